"""pytest setup: make the newsvote package importable from a source checkout."""
import sys
from pathlib import Path

# tests/ sits one level below the checkout, next to newsvote/.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))
