from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    environment: str = "development"

    # Frame sampling and pose model
    target_fps: int = 30
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5
    model_complexity: int = 1
    progress_log_every: int = 30

    # Signal processing
    smoothing_window: int = 5

    # Metric extraction
    ideal_contact_delay_ms: float = 100.0

    # Uploads
    max_upload_mb: int = 200

    class Config:
        env_file = ".env"


settings = Settings()
