from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Barbershop Admin Dashboard"
    API_V1_STR: str = "/api"
    
    # Server
    PORT: int = 8000
    ENVIRONMENT: str = "development"
    
    # Supabase (document store, auth, storage)
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    
    # Collections
    BOOKINGS_TABLE: str = "bookings"
    BARBERS_TABLE: str = "barbersprofile"
    BARBERSHOPS_TABLE: str = "barbershops"
    SERVICES_TABLE: str = "services"
    STYLES_TABLE: str = "styles"
    STORAGE_BUCKET: str = "images"
    
    # Security
    SESSION_COOKIE_NAME: str = "session_token"
    
    # Booking workflow
    STRICT_STATUS_TRANSITIONS: bool = False
    
    # Analytics
    ANALYTICS_DEFAULT_DAYS: int = 30
    DASHBOARD_LIST_LIMIT: int = 5
    
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/errors.log"

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
