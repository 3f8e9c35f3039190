"""
Builds observation dictionaries and text summaries for LLM players.
"""
from game.session import Session


class ContextBuilder:
    """Builds structured context for LLM prompts from a session's observations."""

    @staticmethod
    def build_context(session: Session) -> dict:
        """Everything a player is allowed to see. Never includes the atoms."""
        return {
            "rays": [
                {
                    "id": ray.id,
                    "entry": str(ray.entry),
                    "outcome": ray.kind.value,
                    "exit": None if ray.exit is None else str(ray.exit),
                    "summary": ray.describe(),
                }
                for ray in session.rays
            ],
            "used_positions": sorted(str(edge) for edge in session.used_positions),
            "available_positions": [str(edge) for edge in session.available_positions()],
            "rays_fired": len(session.rays),
            "rays_remaining": session.rays_remaining,
            "max_rays": session.max_rays,
            "ray_points": session.ray_points,
            "hypothesis_mode": session.hypothesis_mode,
            "hypotheses": sorted([cell.row, cell.col] for cell in session.hypotheses),
            "guess_count": session.guess_count,
        }

    @staticmethod
    def build_summary(context: dict) -> str:
        """Format context into the text block shown to the player each turn."""
        lines = ["Current ray results:"]
        if context["rays"]:
            lines.extend(ray["summary"] for ray in context["rays"])
        else:
            lines.append("(No rays fired yet)")

        lines.append("")
        used = context["used_positions"]
        lines.append(f"Used positions: {', '.join(used) if used else 'none'}")
        lines.append(f"Available positions: {', '.join(context['available_positions'])}")
        lines.append(
            f"Rays fired: {context['rays_fired']}/{context['max_rays']} "
            f"(ray points so far: {context['ray_points']})"
        )

        if context["hypothesis_mode"]:
            marks = context["hypotheses"]
            marked = ", ".join(f"({r},{c})" for r, c in marks) if marks else "none"
            lines.append(f"Marked atom positions ({len(marks)}/{context['guess_count']}): {marked}")
            if len(marks) == context["guess_count"]:
                lines.append('All positions marked. Use "check" to submit, or unmark to revise.')

        return "\n".join(lines)
