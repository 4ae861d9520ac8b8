# services/taxonomy.py
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from showplot.models import Taxonomy


def normalize_name(value) -> str:
    return str(value or "").strip()


def _find_category(categories: list, name: str) -> dict | None:
    for entry in categories:
        if isinstance(entry, dict) and entry.get("name") == name:
            return entry
    return None


def _merge(categories: list, category: str, section: str) -> bool:
    """Append category/section in place; True when anything changed."""
    changed = False
    entry = _find_category(categories, category)
    if entry is None:
        entry = {"name": category, "sections": []}
        categories.append(entry)
        changed = True
    if section and section not in entry["sections"]:
        entry["sections"].append(section)
        changed = True
    return changed


def _copy(categories) -> list:
    out = []
    for entry in categories or []:
        if isinstance(entry, dict):
            sections = entry.get("sections")
            out.append({**entry, "sections": list(sections) if isinstance(sections, list) else []})
    return out


async def _load(db: AsyncSession) -> Taxonomy | None:
    return (await db.execute(select(Taxonomy).order_by(Taxonomy.id).limit(1))).scalars().first()


async def get_or_create(db: AsyncSession) -> Taxonomy:
    doc = await _load(db)
    if doc:
        return doc
    doc = Taxonomy(categories=[])
    db.add(doc)
    await db.commit()
    await db.refresh(doc)
    return doc


async def _save(db: AsyncSession, doc: Taxonomy, categories: list) -> Taxonomy:
    doc.categories = categories
    flag_modified(doc, "categories")
    await db.commit()
    await db.refresh(doc)
    return doc


async def upsert_category_section(db: AsyncSession, category_raw, section_raw) -> Taxonomy | None:
    """Grow the taxonomy with an asset's category/section. Sections need a category."""
    category = normalize_name(category_raw)
    section = normalize_name(section_raw)
    if not category and not section:
        return None

    doc = await _load(db)
    if not doc:
        categories = []
        if category:
            categories.append({"name": category, "sections": [section] if section else []})
        doc = Taxonomy(categories=categories)
        db.add(doc)
        await db.commit()
        await db.refresh(doc)
        return doc

    categories = _copy(doc.categories)
    if category and _merge(categories, category, section):
        return await _save(db, doc, categories)
    return doc


async def add_category(db: AsyncSession, name: str) -> Taxonomy:
    doc = await get_or_create(db)
    categories = _copy(doc.categories)
    if _find_category(categories, name) is None:
        categories.append({"name": name, "sections": []})
        return await _save(db, doc, categories)
    return doc


async def add_section(db: AsyncSession, category: str, name: str) -> Taxonomy:
    doc = await get_or_create(db)
    categories = _copy(doc.categories)
    if _merge(categories, category, name):
        return await _save(db, doc, categories)
    return doc
