# Ensure the project root is on sys.path so 'import servicehub' and
# 'from tests.conftest import ...' work regardless of the pytest rootdir.
from pathlib import Path
import sys

_PROJECT_ROOT = Path(__file__).resolve().parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

# Dev runners that start servers or subprocesses
collect_ignore_glob = ["run*.py"]
