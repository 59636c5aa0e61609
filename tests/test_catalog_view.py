"""
Tests for card/detail rendering and the Telegram results region.
"""
import pytest

from conftest import make_mod
from keyboards.catalog_kbs import (
    CLOSE_CALLBACK,
    card_callback_data,
    get_detail_kb,
    parse_card_callback,
)
from services.browse_session import BrowseSession
from services.catalog_view import (
    LOADING_TEXT,
    TelegramCatalogView,
    ViewOptions,
    build_card_text,
    build_detail_text,
    build_results_messages,
)

OPTIONS = ViewOptions(date_format="%d.%m.%Y")


class TestCallbackData:

    def test_round_trip(self):
        assert parse_card_callback(card_callback_data(7, 12)) == (7, 12)

    @pytest.mark.parametrize("data", [None, "", CLOSE_CALLBACK, "mod:1", "mod:a:b", "other:1:2"])
    def test_invalid(self, data):
        assert parse_card_callback(data) is None

    def test_fits_telegram_limit(self):
        assert len(card_callback_data(10**9, 10**6).encode()) <= 64


class TestCardText:

    def test_card_fields(self):
        mod = make_mod(name="Create", authors=("simibubi", "other"), summary="Aesthetic tech", download_count=1500)
        text = build_card_text(mod, 0, OPTIONS)
        assert "*1.* Create" in text
        assert "by simibubi" in text
        assert "other" not in text
        assert "Aesthetic tech" in text
        assert "⬇ 1.5K" in text
        assert "📅 10.10.2026" in text
        assert "https://media.example.com/thumbs/Create.png" in text

    def test_placeholder_thumbnail(self):
        mod = make_mod(logo=False)
        assert OPTIONS.thumbnail_placeholder in build_card_text(mod, 0, OPTIONS)

    def test_markdown_is_escaped(self):
        mod = make_mod(name="super_mod [beta]", authors=("x*y",))
        text = build_card_text(mod, 0, OPTIONS)
        assert "super\\_mod \\[beta]" in text
        assert "x\\*y" in text

    def test_plain_punctuation_is_kept(self):
        mod = make_mod(name="Mod (Forge)", summary="Adds (cool) stuff! 50% faster\\slower")
        text = build_card_text(mod, 0, OPTIONS)
        assert "Mod (Forge)" in text
        assert "Adds (cool) stuff! 50% faster\\slower" in text

    def test_long_summary_is_clipped(self):
        mod = make_mod(summary="a" * 1000)
        text = build_card_text(mod, 0, OPTIONS)
        assert "a" * OPTIONS.card_summary_limit not in text
        assert "…" in text


class TestDetailText:

    def test_detail_fields(self):
        mod = make_mod(
            name="JourneyMap",
            authors=("techbrew", "mysticdrew"),
            categories=("Map and Information", "Forge"),
            download_count=2500000,
        )
        text = build_detail_text(mod, OPTIONS)
        assert "JourneyMap" in text
        assert "by techbrew, mysticdrew" in text
        assert "*Categories:* Map and Information, Forge" in text
        assert "*Downloads:* 2.5M" in text
        assert "*Created:* 01.03.2020 | *Updated:* 10.10.2026" in text
        assert "https://media.example.com/logos/JourneyMap.png" in text

    def test_placeholder_logo_and_no_categories(self):
        mod = make_mod(logo=False, categories=())
        text = build_detail_text(mod, OPTIONS)
        assert OPTIONS.logo_placeholder in text
        assert "*Categories:* —" in text

    def test_detail_keyboard(self):
        mod = make_mod(website_url="https://www.curseforge.com/minecraft/mc-mods/jei")
        rows = get_detail_kb(mod, "View on CurseForge").inline_keyboard
        assert rows[0][0].url == "https://www.curseforge.com/minecraft/mc-mods/jei"
        assert rows[0][0].text == "View on CurseForge"
        assert rows[-1][0].callback_data == CLOSE_CALLBACK

    def test_detail_keyboard_without_link(self):
        mod = make_mod(website_url=None)
        rows = get_detail_kb(mod).inline_keyboard
        assert len(rows) == 1
        assert rows[0][0].callback_data == CLOSE_CALLBACK


class TestResultsMessages:

    def test_single_message(self):
        mods = [make_mod(name=f"Mod {i}") for i in range(3)]
        chunks = build_results_messages(mods, 5, OPTIONS)
        assert len(chunks) == 1
        text, kb = chunks[0]
        assert text.startswith("🔎 Found 3 mods:")
        assert [row[0].callback_data for row in kb.inline_keyboard] == ["mod:5:0", "mod:5:1", "mod:5:2"]

    def test_split_by_length(self):
        options = ViewOptions(message_limit=800)
        mods = [make_mod(name=f"Mod {i}", summary="x" * 250) for i in range(10)]
        chunks = build_results_messages(mods, 1, options)
        assert len(chunks) > 1
        assert all(len(text) <= options.message_limit for text, _ in chunks)
        positions = [row[0].callback_data for _, kb in chunks for row in kb.inline_keyboard]
        assert positions == [f"mod:1:{i}" for i in range(10)]

    def test_split_by_button_count(self):
        options = ViewOptions(max_cards_per_message=4)
        mods = [make_mod(name=f"M{i}", summary="s") for i in range(10)]
        chunks = build_results_messages(mods, 1, options)
        assert [len(kb.inline_keyboard) for _, kb in chunks] == [4, 4, 2]


class TestTelegramCatalogView:

    @pytest.fixture
    def session(self):
        return BrowseSession(chat_id=555)

    async def test_loading_then_results_edits_same_message(self, bot, session):
        view = TelegramCatalogView(bot, session, OPTIONS)
        await view.render_loading()
        assert bot.sent[0].text == LOADING_TEXT
        loading_id = bot.sent[0].message_id

        session.replace_results("create", (make_mod(name="Create"),))
        await view.render_results(session.results)
        assert len(bot.sent) == 1
        assert bot.edited[-1].message_id == loading_id
        assert "Create" in bot.edited[-1].text
        assert session.surface["results"] == [loading_id]

    async def test_new_search_replaces_region(self, bot, session):
        view = TelegramCatalogView(bot, session, OPTIONS)
        await view.render_loading()
        old_id = session.surface["results"][0]
        await view.render_loading()
        assert bot.deleted == [old_id]
        assert session.surface["results"] == [bot.sent[-1].message_id]

    async def test_empty_message(self, bot, session):
        view = TelegramCatalogView(bot, session, OPTIONS)
        await view.render_empty("Please enter a search term.")
        assert bot.sent[0].text == "ℹ️ Please enter a search term."
        assert session.surface["results"] == [bot.sent[0].message_id]

    async def test_shrinking_region_deletes_extra_messages(self, bot, session):
        options = ViewOptions(max_cards_per_message=1, date_format="%d.%m.%Y")
        view = TelegramCatalogView(bot, session, options)
        session.replace_results("m", tuple(make_mod(name=f"M{i}") for i in range(3)))
        await view.render_results(session.results)
        ids = list(session.surface["results"])
        assert len(ids) == 3

        await view.render_empty("No mods found matching your search.")
        assert bot.deleted == ids[1:]
        assert session.surface["results"] == ids[:1]

    async def test_detail_and_dismiss(self, bot, session):
        view = TelegramCatalogView(bot, session, OPTIONS)
        await view.render_detail(make_mod(name="First"))
        first_id = session.surface["detail"]
        await view.render_detail(make_mod(name="Second"))
        assert bot.deleted == [first_id]

        second_id = session.surface["detail"]
        await view.dismiss_detail()
        assert bot.deleted == [first_id, second_id]
        assert "detail" not in session.surface
        # Повторное закрытие — ничего не делает
        await view.dismiss_detail()
        assert bot.deleted == [first_id, second_id]
