"""
Tests for AppController: the named transitions and their effect on AppState.
"""

import asyncio

import pytest

from context_lens.application.controller import AppController
from context_lens.application.state import (
    GENERIC_FAILURE_MESSAGE,
    AnalysisStatus,
    SelectedImage,
    strip_data_uri,
)
from context_lens.domain.exceptions import (
    AnalysisInProgressError,
    AnalysisRequestError,
    InvalidSelectionError,
    MissingCredentialError,
    NotLoggedInError,
)
from context_lens.domain.models import AnalysisResult, FullAnalysisResponse
from context_lens.infrastructure.persistence.history_store import LocalHistoryStore

from conftest import BrokenStorage, FakeAnalysisClient


@pytest.fixture
def phone_response(sample_report, sample_text):
    return FullAnalysisResponse(
        data=AnalysisResult.from_dict(sample_report),
        raw_text=sample_text,
    )


def _logged_in(store, client, username="Dana", currency="EUR"):
    controller = AppController(store, client)
    controller.start()
    controller.login(username, currency)
    return controller


def test_end_to_end_phone_example(store, image_file, phone_response):
    client = FakeAnalysisClient(response=phone_response)
    controller = _logged_in(store, client)

    controller.select_file(str(image_file))
    controller.set_note("cracked screen")
    response = asyncio.run(controller.submit_analysis())

    assert response is phone_response
    history = store.get_history()
    assert len(history) == 1
    assert history[0].note == "cracked screen"
    assert history[0].result.data.object_name == "Phone"
    assert history[0].result.data.confidence_score == 85

    state = controller.state
    assert state.status == AnalysisStatus.DECODED
    assert state.result is phone_response
    assert state.history == history
    assert state.error is None


def test_submit_strips_prefix_and_passes_currency(store, image_file, phone_response):
    client = FakeAnalysisClient(response=phone_response)
    controller = _logged_in(store, client, currency="kes")

    image = controller.select_file(str(image_file))
    asyncio.run(controller.submit_analysis())

    call = client.calls[0]
    assert call["image_b64"] == strip_data_uri(image.data_uri)
    assert not call["image_b64"].startswith("data:")
    assert call["mime_type"] == "image/png"
    assert call["currency"] == "KES"
    assert call["note"] is None


def test_history_stores_full_data_uri(store, image_file, phone_response):
    controller = _logged_in(store, FakeAnalysisClient(response=phone_response))
    image = controller.select_file(str(image_file))
    asyncio.run(controller.submit_analysis())

    assert store.get_history()[0].image_preview == image.data_uri
    assert image.data_uri.startswith("data:image/png;base64,")


def test_undecoded_response_is_shown_as_raw_text(store, image_file):
    response = FullAnalysisResponse(data=None, raw_text="no json here")
    controller = _logged_in(store, FakeAnalysisClient(response=response))
    controller.select_file(str(image_file))

    asyncio.run(controller.submit_analysis())

    assert controller.state.status == AnalysisStatus.DECODED_EMPTY
    assert controller.state.result.raw_text == "no json here"
    assert len(store.get_history()) == 1


@pytest.mark.parametrize(
    "error",
    [AnalysisRequestError("503"), MissingCredentialError("GEMINI_API_KEY is not defined")],
)
def test_failure_sets_generic_message(store, image_file, error):
    controller = _logged_in(store, FakeAnalysisClient(error=error))
    controller.select_file(str(image_file))

    assert asyncio.run(controller.submit_analysis()) is None

    assert controller.state.status == AnalysisStatus.FAILED
    assert controller.state.error == GENERIC_FAILURE_MESSAGE
    assert store.get_history() == []
    # the selection survives, so the user can resubmit
    assert controller.state.selected_image is not None


def test_submit_requires_login(store, image_file):
    controller = AppController(store, FakeAnalysisClient())
    controller.start()
    with pytest.raises(NotLoggedInError):
        asyncio.run(controller.submit_analysis())


def test_submit_requires_selection(store):
    controller = _logged_in(store, FakeAnalysisClient())
    with pytest.raises(InvalidSelectionError):
        asyncio.run(controller.submit_analysis())


def test_only_one_analysis_in_flight(store, image_file, phone_response):
    class SlowClient(FakeAnalysisClient):
        async def analyze_image(self, *args, **kwargs):
            await asyncio.sleep(0.01)
            return await super().analyze_image(*args, **kwargs)

    client = SlowClient(response=phone_response)
    controller = _logged_in(store, client)
    controller.select_file(str(image_file))

    async def run_two():
        first = asyncio.ensure_future(controller.submit_analysis())
        await asyncio.sleep(0)
        assert controller.state.is_analyzing
        assert not controller.state.can_submit
        with pytest.raises(AnalysisInProgressError):
            await controller.submit_analysis()
        return await first

    assert asyncio.run(run_two()) is phone_response
    assert len(client.calls) == 1
    assert not controller.state.is_analyzing


def test_abandoned_analysis_is_ignored(store, image_file, phone_response):
    class SlowClient(FakeAnalysisClient):
        async def analyze_image(self, *args, **kwargs):
            await asyncio.sleep(0.01)
            return await super().analyze_image(*args, **kwargs)

    controller = _logged_in(store, SlowClient(response=phone_response))
    controller.select_file(str(image_file))

    async def submit_then_clear():
        task = asyncio.ensure_future(controller.submit_analysis())
        await asyncio.sleep(0)
        controller.clear_selection()
        return await task

    assert asyncio.run(submit_then_clear()) is None
    assert controller.state.result is None
    assert store.get_history() == []


def test_start_restores_user_and_history(store, image_file, phone_response):
    first = _logged_in(store, FakeAnalysisClient(response=phone_response))
    first.select_file(str(image_file))
    asyncio.run(first.submit_analysis())

    second = AppController(store, FakeAnalysisClient())
    state = second.start()

    assert state.user.username == "Dana"
    assert len(state.history) == 1


def test_start_degrades_when_storage_unavailable():
    controller = AppController(LocalHistoryStore(BrokenStorage()), FakeAnalysisClient())
    state = controller.start()
    assert state.user is None
    assert state.history == []


def test_login_without_storage_still_logs_in():
    controller = AppController(LocalHistoryStore(BrokenStorage()), FakeAnalysisClient())
    controller.start()
    profile = controller.login("Dana", "EUR")
    assert controller.state.user == profile
    assert controller.state.history == []


def test_result_kept_when_history_write_fails(image_file, phone_response):
    controller = AppController(
        LocalHistoryStore(BrokenStorage()), FakeAnalysisClient(response=phone_response),
    )
    controller.start()
    controller.login("Dana", "EUR")
    controller.select_file(str(image_file))

    assert asyncio.run(controller.submit_analysis()) is phone_response
    assert controller.state.result is phone_response


def test_login_rejects_blank_username(store):
    controller = AppController(store, FakeAnalysisClient())
    with pytest.raises(ValueError):
        controller.login("   ", "USD")
    assert store.get_user() is None


def test_select_history_item_restores_view(store, image_file, phone_response):
    controller = _logged_in(store, FakeAnalysisClient(response=phone_response))
    image = controller.select_file(str(image_file))
    controller.set_note("cracked screen")
    asyncio.run(controller.submit_analysis())
    controller.clear_selection()

    item_id = controller.state.history[0].id
    item = controller.select_history_item(item_id)

    state = controller.state
    assert item.id == item_id
    assert state.restored_preview == image.data_uri
    assert state.current_preview == image.data_uri
    assert state.note == "cracked screen"
    assert state.result == phone_response
    assert state.selected_image is None


def test_select_unknown_history_item(store):
    controller = _logged_in(store, FakeAnalysisClient())
    with pytest.raises(InvalidSelectionError):
        controller.select_history_item("nope")


def test_select_file_replaces_restored_preview(store, image_file, phone_response):
    controller = _logged_in(store, FakeAnalysisClient(response=phone_response))
    controller.select_file(str(image_file))
    asyncio.run(controller.submit_analysis())
    controller.select_history_item(controller.state.history[0])

    controller.select_file(str(image_file))

    assert controller.state.restored_preview is None
    assert controller.state.result is None
    assert controller.state.status == AnalysisStatus.IDLE


def test_clear_selection_resets_input(store, image_file):
    controller = _logged_in(store, FakeAnalysisClient())
    controller.select_file(str(image_file))
    controller.set_note("something")

    controller.clear_selection()

    state = controller.state
    assert state.selected_image is None
    assert state.note == ""
    assert state.result is None
    assert state.current_preview is None


def test_clear_history_keeps_user_logged_in(store, image_file, phone_response):
    controller = _logged_in(store, FakeAnalysisClient(response=phone_response))
    controller.select_file(str(image_file))
    asyncio.run(controller.submit_analysis())

    controller.clear_history()

    assert controller.state.history == []
    assert store.get_history() == []
    assert store.get_user().username == "Dana"


def test_delete_history_item(store, image_file, phone_response):
    controller = _logged_in(store, FakeAnalysisClient(response=phone_response))
    controller.select_file(str(image_file))
    asyncio.run(controller.submit_analysis())
    asyncio.run(controller.submit_analysis())
    newest, oldest = controller.state.history

    remaining = controller.delete_history_item(newest.id)

    assert [h.id for h in remaining] == [oldest.id]
    assert controller.state.history == remaining


def test_logout_clears_everything(store, image_file, phone_response):
    controller = _logged_in(store, FakeAnalysisClient(response=phone_response))
    controller.select_file(str(image_file))
    asyncio.run(controller.submit_analysis())

    controller.logout()

    assert controller.state.user is None
    assert controller.state.history == []
    assert store.get_user() is None
    assert store.get_history() == []


def test_select_file_rejects_non_images(tmp_path):
    text = tmp_path / "notes.txt"
    text.write_text("hello")
    with pytest.raises(InvalidSelectionError):
        SelectedImage.from_path(text)
    with pytest.raises(InvalidSelectionError):
        SelectedImage.from_path(tmp_path / "missing.jpg")


def test_start_with_undecodable_profile_is_logged_out(tmp_path, storage):
    home = tmp_path / "store"
    home.mkdir(exist_ok=True)
    (home / "context_lens_user.json").write_bytes(b'{"username": "\xff"}')

    controller = AppController(LocalHistoryStore(storage), FakeAnalysisClient())
    state = controller.start()

    assert state.user is None
    assert state.history == []
