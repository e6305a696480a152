import os
from pathlib import Path
from pydantic import ConfigDict, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str
    STORAGE_ROOT: str = "./storage"
    STORAGE_BUCKET: str = "documents"
    PUBLIC_STORAGE_URL: str = "http://localhost:8000/storage"
    UPLOAD_CACHE_CONTROL: str = "3600"
    MAX_UPLOAD_BYTES: int = 100 * 1024 * 1024
    SEARCH_DEBOUNCE_SECONDS: float = 0.25
    SEARCH_RESULT_LIMIT: int = 10
    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(env_file=".env", env_file_encoding="utf-8")

    @classmethod
    def get_required_fields(cls) -> list[str]:
        """Get all required fields (those without default values)."""
        return [
            name for name, field in cls.model_fields.items() if field.is_required()
        ]

    def __init__(self, **kwargs):
        try:
            # pydantic_settings reads the .env file first, then environment variables
            super().__init__(**kwargs)
        except ValidationError as e:
            env_file = Path(".env")
            missing_fields = [
                field for field in self.get_required_fields() if not os.getenv(field)
            ]

            if missing_fields:
                fields_str = "\n".join(f"- {field}" for field in missing_fields)
                example_env = "\n".join(
                    f"{field}=your_{field.lower()}_here" for field in missing_fields
                )

                if not env_file.exists():
                    error_msg = (
                        f"\n\nError: Missing required environment variables!"
                        f"\nMissing variables: {fields_str}"
                        f"\n\nFor local development, create a .env file with:"
                        f"\n{example_env}"
                    )
                else:
                    error_msg = (
                        f"\n\nError: Missing required environment variables!"
                        f"\nMissing variables: {fields_str}"
                        f"\n\nPlease add these to your .env file or set as environment variables."
                    )

                raise ValueError(error_msg) from e
            else:
                raise


settings = Settings()
