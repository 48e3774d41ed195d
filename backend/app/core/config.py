from dotenv import load_dotenv
import os

load_dotenv()  # Carrega variáveis do .env

DATABASE_URL = os.getenv("DATABASE_URL")
SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173")
CORS_ORIGIN_REGEX = os.getenv("CORS_ORIGIN_REGEX", r"^https://.*\.vercel\.app$")
REGISTRATION_COMPLETE_STEP = int(os.getenv("REGISTRATION_COMPLETE_STEP", 4))

def parse_cors_origins(value: str):
    if not value:
        return []
    if value.strip() == "*":
        return ["*"]
    return [origin.strip() for origin in value.split(",") if origin.strip()]
