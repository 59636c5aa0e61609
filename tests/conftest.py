"""
Общие фикстуры: фабрика модов, тестовый каталог, фейковые представление и бот.
"""
import os
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

# config.py валидирует BOT_TOKEN при импорте
os.environ.setdefault("BOT_TOKEN", "123456:TEST-TOKEN")

from services.catalog_models import Catalog, Mod  # noqa: E402


def mod_record(
    name="Some Mod",
    summary="Does nothing in particular",
    authors=("someone",),
    categories=("Miscellaneous",),
    download_count=42,
    logo=True,
    website_url="https://www.curseforge.com/minecraft/mc-mods/some-mod",
    **extra,
):
    """Запись мода в формате mods-data.json."""
    record = {
        "name": name,
        "summary": summary,
        "authors": [{"name": a} for a in authors],
        "categories": [{"name": c} for c in categories],
        "downloadCount": download_count,
        "dateCreated": "2020-03-01T12:00:00Z",
        "dateModified": "2026-10-10T12:00:00Z",
        "links": {"websiteUrl": website_url},
    }
    if logo:
        record["logo"] = {
            "thumbnailUrl": f"https://media.example.com/thumbs/{name.replace(' ', '-')}.png",
            "url": f"https://media.example.com/logos/{name.replace(' ', '-')}.png",
        }
    record.update(extra)
    return record


def make_mod(**kwargs) -> Mod:
    return Mod.model_validate(mod_record(**kwargs))


def make_catalog(*mods: Mod, generated_at=None) -> Catalog:
    return Catalog(
        generated_at=generated_at or datetime(2026, 10, 15, 8, 0, tzinfo=timezone.utc),
        mods=mods,
    )


@pytest.fixture
def forge_catalog():
    """A — название с Forge, B — категория Forge, C — ни при чём."""
    a = make_mod(name="Forge Essentials", summary="Server utilities", authors=("alice",), categories=("Server",))
    b = make_mod(name="Tinkers", summary="Tools and weapons", authors=("bob",), categories=("Forge Addons",))
    c = make_mod(name="Sodium", summary="Rendering engine", authors=("jelly",), categories=("Fabric",))
    return make_catalog(a, b, c)


@pytest.fixture
def sample_document():
    return {
        "generatedAt": "2026-10-15T08:00:00.000Z",
        "mods": [
            mod_record(name="Just Enough Items", authors=("mezz",), download_count=412345678),
            mod_record(name="JourneyMap", authors=("techbrew", "mysticdrew"), logo=False),
        ],
    }


class FakeView:
    """Записывает вызовы вместо отрисовки."""

    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if self.fail_on == name:
            raise RuntimeError(f"{name} failed")

    async def render_loading(self):
        self._record("loading")

    async def render_empty(self, message):
        self._record("empty", message)

    async def render_results(self, mods):
        self._record("results", tuple(mods))

    async def render_detail(self, mod):
        self._record("detail", mod)

    async def dismiss_detail(self):
        self._record("dismiss")

    @property
    def names(self):
        return [c[0] for c in self.calls]


@pytest.fixture
def view():
    return FakeView()


class FakeBot:
    """Минимальный Bot: send/edit/delete пишутся в списки."""

    def __init__(self):
        self.sent = []
        self.edited = []
        self.deleted = []
        self._next_id = 100

    async def send_message(self, chat_id, text, reply_markup=None, parse_mode=None, **kwargs):
        self._next_id += 1
        self.sent.append(SimpleNamespace(
            chat_id=chat_id, text=text, reply_markup=reply_markup, parse_mode=parse_mode, message_id=self._next_id
        ))
        return SimpleNamespace(message_id=self._next_id)

    async def edit_message_text(self, text, chat_id=None, message_id=None, reply_markup=None, parse_mode=None, **kwargs):
        self.edited.append(SimpleNamespace(
            chat_id=chat_id, message_id=message_id, text=text, reply_markup=reply_markup, parse_mode=parse_mode
        ))
        return True

    async def delete_message(self, chat_id, message_id, **kwargs):
        self.deleted.append(message_id)
        return True


@pytest.fixture
def bot():
    return FakeBot()
