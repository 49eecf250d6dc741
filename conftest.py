import os
import sys
from pathlib import Path

import django

ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings")
os.environ.setdefault("SUPABASE_URL", "https://storage.test")
os.environ.setdefault("WEBHOOK_URL", "https://hooks.test/demo")
os.environ.setdefault("WEBHOOK_SECRET", "test-secret")
django.setup()
