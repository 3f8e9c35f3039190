"""
Configuration settings for the Black Box sim.
"""
import os
from dotenv import load_dotenv

load_dotenv()

GAME_TITLE = "Black Box Sim"
VERSION = "1.0.0"

# Board settings
GRID_SIZE = 8
NUM_ATOMS = int(os.getenv("NUM_ATOMS", "4"))

# Round settings
MAX_RAYS = int(os.getenv("MAX_RAYS", "20"))
MISS_PENALTY = 5  # points per atom not covered by the guess

# Tracer safety valve: an order of magnitude above perimeter * size.
TRACE_STEP_LIMIT = 10 * 4 * GRID_SIZE * GRID_SIZE

# Deterministic atom placement
SIM_SEED = int(os.getenv("SIM_SEED", "1"))

# LLM settings
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "mock")  # claude, openai, mock
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
CLAUDE_MODEL = os.getenv("CLAUDE_MODEL", "claude-sonnet-4-5-20250929")
CLAUDE_THINKING_BUDGET = int(os.getenv("CLAUDE_THINKING_BUDGET", "0"))  # 0 disables extended thinking; API minimum is 1024
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

# Player loop settings
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "90.0"))  # seconds
LLM_MAX_TOKENS = 4000
LLM_MAX_RETRIES = int(os.getenv("LLM_MAX_RETRIES", "3"))
LLM_RETRY_BACKOFF = (1.0, 4.0, 15.0)  # seconds before attempt 2, 3, 4...
MAX_CONSECUTIVE_FAILURES = 5
MAX_ITERATIONS = 100  # fire + mark/unmark turns, guards against mark/unmark loops

# Predict mode
PREDICT_PARSE_ATTEMPTS = 2  # first reply + one correction request

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
