import sys
import os

# Add backend/ to path so tests can import backend modules directly
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

# Add scripts/ to path so tests can import script modules directly
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "scripts"))

# Pin the server to the repo sample data and default scoring before it is imported;
# load_dotenv() never overrides variables already set here.
os.environ["DATA_PATH"] = os.path.join(os.path.dirname(__file__), "..", "data")
os.environ.pop("CONFLICT_SCORE_SCALE", None)
