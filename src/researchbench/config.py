import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load the appropriate .env file on module import
env = os.environ.get("RESEARCHBENCH_ENV", "development").lower()
env_file = f".env.{env}"
if os.path.exists(env_file):
    load_dotenv(env_file)
else:
    # Fall back to the default .env file
    load_dotenv()


@dataclass
class Config:
    environment: str
    mongo_url: str
    mongo_database: str
    mongo_collection: str
    redis_url: str
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            environment=env,
            mongo_url=os.environ.get("MONGO_URL", "mongodb://localhost:27017"),
            mongo_database=os.environ.get("MONGO_DATABASE", "researchbench"),
            mongo_collection=os.environ.get("MONGO_COLLECTION", "research"),
            redis_url=os.environ.get("REDIS_URL", "redis://localhost:6379/0"),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )


config = Config.from_env()
