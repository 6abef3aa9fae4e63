from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./plantpal.db"
    
    # JWT (access tokens are issued by the auth service)
    AUTH_ACCESS_TOKEN_SECRET: str = "dev-secret-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    
    # CORS (shared by the HTTP API and Socket.IO)
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8080"
    
    # Device event relay (x-api-key sent by the IoT bridge functions)
    API_KEY: str = "dev-api-key"
    
    # Socket.IO
    SOCKETIO_PATH: str = "socket.io"
    HANDSHAKE_TIMEOUT_SECONDS: float = 10.0
    
    # AWS IoT device shadows
    AWS_REGION: str = "eu-central-1"
    AWS_IOT_ENDPOINT: str = ""
    
    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    
    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
