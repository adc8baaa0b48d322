"""
Round-robin session rotation
"""
import logging
from typing import Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

S = TypeVar("S")


class SessionRotationSelector:
    """The single place rotation order is decided"""

    @staticmethod
    def next_session(sessions: Sequence[S], last_completed_session_id: Optional[int]) -> Optional[S]:
        """
        Pick the session that follows the last completed one.

        Args:
            sessions: Sessions in rotation order (anything with an ``id``)
            last_completed_session_id: Session of the most recent program workout, or None

        Returns:
            The next session, the first one when there is no usable history,
            or None for an empty rotation
        """
        if not sessions:
            return None
        if last_completed_session_id is None:
            return sessions[0]

        index = next((i for i, s in enumerate(sessions) if s.id == last_completed_session_id), None)
        if index is None:
            # e.g. a workout logged against a superseded mesocycle
            logger.warning(f"Last completed session {last_completed_session_id} not in rotation, restarting")
            return sessions[0]

        return sessions[(index + 1) % len(sessions)]
