import os

# Settings are read at import time, so the environment is fixed before any app import
os.environ["ENCRYPTION_KEY"] = "0f" * 32
os.environ["AUTH_SECRET"] = "test-auth-secret"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
for provider in ("OPENAI", "ANTHROPIC", "GEMINI", "COHERE"):
    os.environ[f"{provider}_API_KEY"] = ""
