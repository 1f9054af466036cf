import os
import tempfile

# Lightweight local DB and no startup seeding; must run before workflow_engine imports.
_DB_PATH = os.path.join(tempfile.gettempdir(), f"workflow_engine_test_{os.getpid()}.db")
os.environ.setdefault("DATABASE_URL", f"sqlite+pysqlite:///{_DB_PATH}")
os.environ.setdefault("AUTO_CREATE_DB", "true")
os.environ.setdefault("AUTO_RUN_MIGRATIONS", "false")
os.environ.setdefault("AUTO_SEED_TEMPLATES", "false")
os.environ.setdefault("WORKFLOW_AUTH_DISABLED", "true")
os.environ.setdefault("WORKFLOW_ENV", "dev")
