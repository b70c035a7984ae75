"""Tests for the video library: videos, memos, tags and themes."""

import pytest

from app.core.errors import DuplicateResourceError, ForbiddenError, ValidationError
from app.features.memos.schemas import MemoCreateIn, MemoUpdateIn
from app.features.themes.schemas import ThemeCreateIn
from app.features.videos.schemas import VideoSaveIn
from app.utils.youtube import extract_video_id


class TestVideos:
    def test_save_is_idempotent_per_user(self, services, alice, bob) -> None:
        first = services.videos.save(VideoSaveIn(youtube_url="https://youtu.be/dQw4w9WgXcQ"), user_id=alice.id)
        again = services.videos.save(
            VideoSaveIn(youtube_url="https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=42", title="Rick"),
            user_id=alice.id,
        )
        other = services.videos.save(VideoSaveIn(youtube_url="dQw4w9WgXcQ"), user_id=bob.id)

        assert again.id == first.id
        assert again.title == "Rick"
        assert again.youtube_url == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
        assert other.id != first.id

    def test_invalid_url(self, services, alice) -> None:
        with pytest.raises(ValidationError):
            services.videos.save(VideoSaveIn(youtube_url="https://vimeo.com/123"), user_id=alice.id)

    def test_delete_cascades_to_memos(self, services, alice, alice_memo) -> None:
        services.videos.delete(alice_memo.video_id, user_id=alice.id)

        assert services.memos.list(alice.id)["total"] == 0

    def test_mark_watched_counts_and_stamps(self, services, alice, bob, alice_memo) -> None:
        first = services.videos.mark_watched(alice_memo.video_id, user_id=alice.id)
        stamped = first.last_watched_at
        second = services.videos.mark_watched(alice_memo.video_id, user_id=alice.id)

        assert second.watch_count == 2
        assert stamped is not None and second.last_watched_at >= stamped
        with pytest.raises(ForbiddenError):
            services.videos.mark_watched(alice_memo.video_id, user_id=bob.id)


class TestMemos:
    def test_tags_are_found_or_created(self, services, alice, alice_memo) -> None:
        second = services.memos.create(
            MemoCreateIn(video_id=alice_memo.video_id, content="TaskGroup", tags=["python", "async"]),
            user_id=alice.id,
        )

        assert {t.name for t in second.tags} == {"python", "async"}
        python_ids = {t.id for t in alice_memo.tags if t.name == "python"}
        assert python_ids == {t.id for t in second.tags if t.name == "python"}
        assert services.memos.list(alice.id, tag="async")["total"] == 1

    def test_update_replaces_tags(self, services, alice, alice_memo) -> None:
        updated = services.memos.update(alice_memo.id, MemoUpdateIn(tags=[]), user_id=alice.id)

        assert updated.tags == []
        assert updated.content == alice_memo.content

    def test_memo_on_foreign_video(self, services, bob, alice_memo) -> None:
        with pytest.raises(ForbiddenError):
            services.memos.create(
                MemoCreateIn(video_id=alice_memo.video_id, content="sneaky"), user_id=bob.id
            )


class TestThemes:
    def test_name_unique_per_user(self, services, alice, bob) -> None:
        services.themes.create(ThemeCreateIn(name="Python"), user_id=alice.id)
        services.themes.create(ThemeCreateIn(name="Python"), user_id=bob.id)

        with pytest.raises(DuplicateResourceError):
            services.themes.create(ThemeCreateIn(name="Python"), user_id=alice.id)

    def test_delete_detaches_videos(self, services, alice) -> None:
        theme = services.themes.create(ThemeCreateIn(name="Python", color="#3366FF"), user_id=alice.id)
        video = services.videos.save(
            VideoSaveIn(youtube_url="dQw4w9WgXcQ", theme_id=theme.id), user_id=alice.id
        )

        services.themes.delete(theme.id, user_id=alice.id)

        assert services.videos.get(video.id, alice.id).theme_id is None


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://m.youtube.com/watch?feature=share&v=dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://youtu.be/dQw4w9WgXcQ?t=10", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/shorts/dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://example.com/watch?v=dQw4w9WgXcQ", None),
        ("", None),
    ],
)
def test_extract_video_id(url, expected) -> None:
    assert extract_video_id(url) == expected
