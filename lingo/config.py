from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    app_name: str = 'Lingo Classroom'
    app_env: str = 'local'
    log_level: str = 'INFO'
    appwrite_endpoint: str = 'https://cloud.appwrite.io/v1'
    appwrite_project_id: str = '68651f96001557986822'
    appwrite_api_key: str = ''
    appwrite_database_id: str = '6865602f000c8cc789bc'
    users_collection_id: str = '6865d7f500022651a73a'
    instructor_profiles_collection_id: str = '68b440bb00333552369f'
    class_assignments_collection_id: str = '68b440c2000d5d7e08ad'
    class_sessions_collection_id: str = '68b440c700292daa4dda'
    student_ratings_collection_id: str = '68b440cd001f7de5e982'
    online_sessions_collection_id: str = '68b440d1003219713fb2'
    instructor_schedules_collection_id: str = '68b440d60002a2546d33'
    password_recovery_url: str = 'react-tutorial://reset-password'
    meeting_base_url: str = 'https://meet.example.com'
    list_page_size: int = 100
    calendar_fetch_workers: int = 3
    backend_slow_ms: int = 500
    request_slow_ms: int = 1000


settings = Settings()
