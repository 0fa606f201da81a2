from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "filings"
    db_username: str = "filings"
    db_password: str = "secret"

    job_type: str = "OCD_CBT"
    project_origin: str = "OCD_CBT"
    source_prefix: str = ""
    max_file_size_bytes: int = 100 * 1024 * 1024
    stale_job_hours: int = 24
    inter_document_delay_seconds: float = 3.0

    storage_backend: str = "local"
    local_documents_root: str = "/app/files"
    s3_bucket_name: str = ""
    aws_region: str = "us-east-1"

    pdf_engine: str = "pdfplumber"
    work_dir: str | None = None
    min_text_chars: int = 100
    command_timeout_seconds: int = 300

    use_ghostscript: bool = True
    ghostscript_quality: str = "ebook"

    use_cloud_ocr: bool = True
    cloud_ocr_max_bytes: int = 10 * 1024 * 1024
    cloud_ocr_staging_prefix: str = "textract-staging/"

    use_local_ocr: bool = True
    tesseract_lang: str = "eng"
    ocr_dpi: int = 300
    ocr_max_pages: int = 100

    use_vision_fallback: bool = True

    extraction_provider: str = "openai"
    extraction_api_key: str = ""
    extraction_model_name: str = "gpt-4o"
    extraction_base_url: str | None = None
    extraction_timeout_seconds: int = 300
    extraction_temperature: float = 0.0
    extraction_max_text_chars: int = 15000
    vision_max_pages: int = 100
    vision_image_dpi: int = 150
    vision_max_image_dimension: int = 1800

    retry_base_delay_seconds: float = 2.0
    retry_max_retries: int = 3
    overloaded_final_wait_seconds: float = 30.0
    rate_limited_final_wait_seconds: float = 60.0
    inter_chunk_delay_seconds: float = 2.0

    dedup_fuzzy_threshold: float = 0.9
