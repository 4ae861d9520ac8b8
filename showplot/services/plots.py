# services/plots.py
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from showplot.models import StagePlot

UNTITLED = "Untitled"


class PlotNotFound(Exception):
    pass


class InvalidPlotId(ValueError):
    pass


def parse_plot_id(raw) -> int:
    text = str(raw or "").strip()
    if not (text.isascii() and text.isdigit()) or int(text) <= 0:
        raise InvalidPlotId(text)
    return int(text)


def display_name(plot: StagePlot) -> str:
    return plot.name or UNTITLED


async def list_for_user(db: AsyncSession, user_id: int) -> list[StagePlot]:
    rows = await db.execute(
        select(StagePlot)
        .where(StagePlot.user_id == user_id)
        .order_by(StagePlot.updated_at.desc(), StagePlot.id.desc())
    )
    return list(rows.scalars().all())


async def get_for_user(db: AsyncSession, user_id: int, plot_id: int) -> StagePlot:
    plot = (
        await db.execute(select(StagePlot).where(StagePlot.id == plot_id, StagePlot.user_id == user_id))
    ).scalars().first()
    if not plot:
        raise PlotNotFound(plot_id)
    return plot


async def save(
    db: AsyncSession,
    user_id: int,
    *,
    state: list[dict],
    name: str = "",
    plot_id: Optional[int] = None,
) -> tuple[StagePlot, bool]:
    """Create or overwrite a plot owned by ``user_id``; returns (plot, created)."""
    if plot_id is not None:
        plot = await get_for_user(db, user_id, plot_id)
        plot.state = state
        plot.name = name
        flag_modified(plot, "state")
        plot.updated_at = func.now()
        await db.commit()
        await db.refresh(plot)
        return plot, False

    plot = StagePlot(user_id=user_id, name=name, state=state, inputs=[])
    db.add(plot)
    await db.commit()
    await db.refresh(plot)
    return plot, True


async def replace_state(db: AsyncSession, plot: StagePlot, state: list[dict]) -> StagePlot:
    plot.state = state
    flag_modified(plot, "state")
    plot.updated_at = func.now()
    await db.commit()
    await db.refresh(plot)
    return plot


async def delete_for_user(db: AsyncSession, user_id: int, plot_id: int) -> None:
    plot = await get_for_user(db, user_id, plot_id)
    await db.delete(plot)
    await db.commit()


async def count_all(db: AsyncSession) -> int:
    return int((await db.execute(select(func.count(StagePlot.id)))).scalar_one())
