"""FastAPI application for the card czar game backend"""

import logging
import os

from .cards import load_answers, load_prompts
from .rules import rules_from_env
from .session import SessionCoordinator
from .ws.server import create_app

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def build_session() -> SessionCoordinator:
    """Load the card sets named by the environment into a fresh session."""
    rules = rules_from_env()
    prompts_file = os.getenv("CAH_PROMPTS_FILE", "assets/prompts.json")
    answers_file = os.getenv("CAH_ANSWERS_FILE", "assets/answers.json")
    session = SessionCoordinator(
        prompts=load_prompts(prompts_file, rules.underscore_length),
        answers=load_answers(answers_file),
        rules=rules,
    )
    logger.info(
        f"Session ready: hand size {rules.hand_size}, "
        f"{rules.min_players}-{rules.max_players} players"
    )
    return session


app = create_app(build_session())

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
