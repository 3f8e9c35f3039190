"""
Prompt templates for LLM players.
"""

RAY_RULES = """GRID: rows 1-8 (top to bottom), columns 1-8 (left to right).
RAYS: fire from an edge position. NORTH/SOUTH use columns 1-8, EAST/WEST use rows 1-8.

A ray travels cell by cell. Before entering each cell:
1. An atom in that cell absorbs the ray (HIT). An atom in the very first cell always absorbs,
   even when another atom would reflect the ray.
2. On the first cell only: an atom beside it along the edge reflects the ray straight back (R).
3. Otherwise look at the two cells beside the cell ahead, perpendicular to travel:
   atoms on both sides reverse the ray; an atom on one side turns the ray 90 degrees away from it.
A ray that leaves the grid exits at that edge position."""

SYSTEM_PROMPT = """You are playing Black Box. Find exactly {guess_count} hidden atoms in an 8x8 grid by firing rays.

""" + RAY_RULES + """

SCORING (lower is better): 1 point per ray entry, 1 more when it exits somewhere else,
5 points per atom you miss. You cannot fire from a position already used as an entry or exit.
Maximum {max_rays} rays.

Respond with JSON only:
{actions}"""

PLAIN_ACTIONS = """{"action": "fire", "side": "north|south|east|west", "position": 1-8, "reasoning": "..."}
{"action": "guess", "atoms": [[row, col], ...], "reasoning": "..."}"""

HYPOTHESIS_ACTIONS = """{"action": "fire", "side": "north|south|east|west", "position": 1-8, "reasoning": "..."}
{"action": "mark", "row": 1-8, "col": 1-8, "reasoning": "..."}
{"action": "unmark", "row": 1-8, "col": 1-8, "reasoning": "..."}
{"action": "check", "reasoning": "..."}
Mark your suspected atom positions, then use "check" once exactly the required number are marked."""

TURN_PROMPT = """{feedback}{summary}

{instruction}"""

NEXT_MOVE = "Choose your next action. Respond with a JSON object:"
FINAL_ANSWER = "You have used all your rays. Submit your final answer now. Respond with a JSON object:"

VALID_ACTIONS = {"fire", "guess", "mark", "unmark", "check"}

PARSE_ERROR = 'Your last response was not a valid JSON action. Use one of: {actions}.'


def build_system_prompt(*, guess_count: int, max_rays: int, hypothesis_mode: bool) -> str:
    return SYSTEM_PROMPT.format(
        guess_count=guess_count,
        max_rays=max_rays,
        actions=HYPOTHESIS_ACTIONS if hypothesis_mode else PLAIN_ACTIONS,
    )


def allowed_actions(hypothesis_mode: bool) -> list[str]:
    if hypothesis_mode:
        return ["fire", "mark", "unmark", "check"]
    return ["fire", "guess"]


def build_turn_prompt(summary: str, *, feedback: str = "", final: bool = False) -> str:
    """Build the user turn from the board summary and any error from the last move."""
    return TURN_PROMPT.format(
        feedback=f"ERROR: {feedback}\n\n" if feedback else "",
        summary=summary,
        instruction=FINAL_ANSWER if final else NEXT_MOVE,
    )


# Predict mode: the atoms are shown, the agent predicts one ray's outcome.

PREDICT_SYSTEM_PROMPT = """Predict where a ray will exit in Black Box.

""" + RAY_RULES + """

Respond with JSON only:
{"exit_side": "north|south|east|west", "exit_position": 1-8, "reasoning": "..."}
OR for absorption: {"absorbed": true, "reasoning": "..."}
OR for reflection: {"reflected": true, "reasoning": "..."}"""

PREDICT_PROMPT = """Atoms are located at: {atoms}

{board}A ray is fired from {entry}.

Trace the ray step by step and predict where it will exit (or if it will be absorbed/reflected)."""

PREDICT_CORRECTION_SYSTEM = "Respond with JSON only. No other text."

PREDICT_CORRECTION = """Your previous response was not valid JSON. Please respond with ONLY a JSON object, nothing else:

Original question: Atoms at {atoms}. Ray from {entry}. Where does it exit?

Respond with ONE of these exact formats:
{{"exit_side": "north", "exit_position": 5, "reasoning": "..."}}
{{"absorbed": true, "reasoning": "..."}}
{{"reflected": true, "reasoning": "..."}}"""


def _atom_list(atoms) -> str:
    return ", ".join(f"({r},{c})" for r, c in sorted(atoms))


def build_atom_board(atoms, size: int = 8) -> str:
    """Text board with O for atoms and - for empty cells, column numbers on top."""
    lines = ["  " + " ".join(str(c) for c in range(1, size + 1))]
    for r in range(1, size + 1):
        row = " ".join("O" if (r, c) in atoms else "-" for c in range(1, size + 1))
        lines.append(f"{r} {row}")
    return "\n".join(lines)


def build_predict_prompt(atoms, entry, *, show_board: bool = False) -> str:
    board = ""
    if show_board:
        board = f"Board (O = atom positions):\n```\n{build_atom_board(atoms)}\n```\n\n"
    return PREDICT_PROMPT.format(atoms=_atom_list(atoms), board=board, entry=entry)


def build_predict_correction(atoms, entry) -> str:
    return PREDICT_CORRECTION.format(atoms=_atom_list(atoms), entry=entry)
