# services/editing.py
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from showplot.editor.commands import apply_ops
from showplot.editor.history import History
from showplot.editor.inputs import load_channel_list
from showplot.editor.nodes import EditError
from showplot.models import Asset, StagePlot
from showplot.schemas import PlotNode
from showplot.services import plots
from showplot.settings.config import settings

logger = logging.getLogger(__name__)


@dataclass
class EditSession:
    plot_id: int
    history: History = field(default_factory=lambda: History([], limit=settings.HISTORY_LIMIT))

    def result(self) -> dict:
        return {
            "id": self.plot_id,
            "state": self.history.present,
            "can_undo": self.history.can_undo,
            "can_redo": self.history.can_redo,
        }


class EditSessionStore:
    """Per-(user, plot) undo histories kept in process memory."""

    def __init__(self):
        self._lock = threading.Lock()
        self._sessions: Dict[Tuple[int, int], EditSession] = {}

    def get(self, user_id: int, plot_id: int) -> Optional[EditSession]:
        with self._lock:
            return self._sessions.get((user_id, plot_id))

    def attach(self, user_id: int, plot: StagePlot) -> EditSession:
        """Session for ``plot``, rebased on the stored state if it was saved elsewhere."""
        stored = list(plot.state or [])
        with self._lock:
            session = self._sessions.get((user_id, plot.id))
            if session is None:
                session = EditSession(plot_id=plot.id)
                session.history.reset(stored)
                self._sessions[(user_id, plot.id)] = session
            elif session.history.present != stored:
                logger.info("Plot %s changed outside the editor; resetting history", plot.id)
                session.history.reset(stored)
            return session

    def drop(self, user_id: int, plot_id: int) -> None:
        with self._lock:
            self._sessions.pop((user_id, plot_id), None)


SESSIONS = EditSessionStore()

_channel_defaults: Optional[dict] = None


def channel_defaults() -> dict:
    global _channel_defaults
    if _channel_defaults is None:
        _channel_defaults = load_channel_list(settings.CHANNEL_DEFAULTS_CSV)
    return _channel_defaults


async def asset_names(db: AsyncSession) -> dict[str, str]:
    rows = (await db.execute(select(Asset.id, Asset.name))).all()
    return {str(asset_id): name for asset_id, name in rows}


def _check_state(nodes: list) -> None:
    for node in nodes:
        try:
            PlotNode.model_validate(node, strict=True)
        except ValidationError as exc:
            raise EditError(f"Invalid node {node.get('id')!r}: {exc.errors()[0]['msg']}") from exc


async def apply_edits(db: AsyncSession, user_id: int, plot_id: int, ops: list[dict]) -> dict:
    plot = await plots.get_for_user(db, user_id, plot_id)
    session = SESSIONS.attach(user_id, plot)
    names = await asset_names(db)
    nxt = apply_ops(session.history.present, ops, asset_names=names, defaults=channel_defaults())
    if nxt is not session.history.present:
        _check_state(nxt)
    if session.history.set(nxt):
        await plots.replace_state(db, plot, session.history.present)
    return session.result()


async def step(db: AsyncSession, user_id: int, plot_id: int, direction: str) -> dict:
    plot = await plots.get_for_user(db, user_id, plot_id)
    session = SESSIONS.attach(user_id, plot)
    moved = session.history.undo() if direction == "undo" else session.history.redo()
    if moved:
        await plots.replace_state(db, plot, session.history.present)
    return session.result()
