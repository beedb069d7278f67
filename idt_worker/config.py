from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    SERVICE_NAME: str = "idt-worker"
    HOST: str = "0.0.0.0"
    PORT: int = 8003
    LOG_LEVEL: str = "INFO"

    # MQTT
    MQTT_BROKER_HOST: str = "localhost"
    MQTT_BROKER_PORT: int = 1883
    MQTT_CLIENT_ID: str = "idt-worker"
    MQTT_USERNAME: str = ""
    MQTT_PASSWORD: str = ""
    MQTT_TOPIC: str = "machine/+/realtime"
    # At-most-once: undelivered readings are accepted as lost
    MQTT_QOS: int = 0

    # MongoDB (time-series sink)
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DB: str = "machine"
    MONGODB_COLLECTION: str = "machine_realtime"
    MONGODB_CONNECT_ATTEMPTS: int = 10

    class Config:
        env_file = ".env"


settings = Settings()
