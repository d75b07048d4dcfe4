"""
Integration tests for nested creates and updates against the test models.
"""

import pytest
from unittest.mock import patch

from django.contrib.contenttypes.models import ContentType

from nested_updater.core.settings import NestingSettings
from nested_updater.nesting.engine import NestedUpdateEngine
from test_app.models import Author, Comment, Genre, Post, PostDetail, Special, Tag

pytestmark = [pytest.mark.integration, pytest.mark.django_db]


@pytest.fixture
def engine():
    return NestedUpdateEngine(settings=NestingSettings.from_django_settings())


def engine_with(label, key, value):
    settings = NestingSettings.from_django_settings().with_relation(label, key, value)
    return NestedUpdateEngine(settings=settings)


@pytest.fixture
def post():
    return Post.objects.create(title="First post", body="hello there")


class TestPluralChildren:
    def test_create_with_two_new_children(self, engine):
        post = engine.create(
            Post, {"title": "P", "comments": [{"title": "one"}, {"title": "two"}]}
        )

        comments = Comment.objects.order_by("id")
        assert [c.title for c in comments] == ["one", "two"]
        assert all(c.post_id == post.pk for c in comments)
        assert Comment.objects.count() == 2

    def test_update_existing_and_create_new(self, engine, post):
        existing = Comment.objects.create(post=post, title="old")

        engine.update(
            {
                "comments": [
                    {"id": existing.pk, "title": "t"},
                    {"title": "new", "body": "b"},
                ]
            },
            post,
        )

        existing.refresh_from_db()
        assert existing.title == "t"
        created = Comment.objects.exclude(pk=existing.pk).get()
        assert (created.title, created.body, created.post_id) == ("new", "b", post.pk)

    def test_omitted_children_stay_linked_by_default(self, engine, post):
        kept = Comment.objects.create(post=post, title="kept")
        other = Comment.objects.create(post=post, title="other")

        engine.update({"comments": [{"id": kept.pk}]}, post)

        other.refresh_from_db()
        assert other.post_id == post.pk

    def test_omitted_children_are_detached(self, post):
        engine = engine_with("test_app.Post", "comments", {"detach": True})
        kept = Comment.objects.create(post=post, title="kept")
        other = Comment.objects.create(post=post, title="other")

        engine.update({"comments": [kept.pk]}, post)

        other.refresh_from_db()
        assert other.post_id is None
        assert list(post.comments.all()) == [kept]

    def test_omitted_children_are_deleted(self, post):
        engine = engine_with(
            "test_app.Post", "comments", {"detach": True, "delete-detached": True}
        )
        Comment.objects.create(post=post, title="gone")

        engine.update({"comments": []}, post)

        assert Comment.objects.count() == 0

    def test_null_plural_payload_is_an_empty_list(self, post):
        engine = engine_with("test_app.Post", "comments", {"detach": True})
        comment = Comment.objects.create(post=post, title="c")

        engine.update({"comments": None}, post)

        comment.refresh_from_db()
        assert comment.post_id is None

    def test_link_existing_child_by_key(self, engine, post):
        loose = Comment.objects.create(title="loose")

        engine.update({"comments": [loose.pk]}, post)

        loose.refresh_from_db()
        assert loose.post_id == post.pk
        assert loose.title == "loose"


class TestParentOwnedRelation:
    def test_create_with_new_genre(self, engine):
        post = engine.create(Post, {"title": "P", "genre": {"name": "Sci-fi"}})

        post.refresh_from_db()
        assert post.genre.name == "Sci-fi"

    def test_link_genre_by_key(self, engine, post):
        genre = Genre.objects.create(name="Drama")

        engine.update({"genre": genre.pk}, post)

        post.refresh_from_db()
        assert post.genre_id == genre.pk

    def test_update_linked_genre(self, engine, post):
        genre = Genre.objects.create(name="Drama")
        post.genre = genre
        post.save()

        engine.update({"genre": {"id": genre.pk, "name": "Comedy"}}, post)

        genre.refresh_from_db()
        assert genre.name == "Comedy"

    def test_null_unlinks_without_deleting(self, engine, post):
        genre = Genre.objects.create(name="Drama")
        post.genre = genre
        post.save()

        engine.update({"genre": None}, post)

        post.refresh_from_db()
        assert post.genre_id is None
        assert Genre.objects.filter(pk=genre.pk).exists()

    def test_null_deletes_when_configured(self, post):
        engine = engine_with("test_app.Post", "genre", {"delete-detached": True})
        genre = Genre.objects.create(name="Drama")
        post.genre = genre
        post.save()

        engine.update({"genre": None}, post)

        post.refresh_from_db()
        assert post.genre_id is None
        assert not Genre.objects.filter(pk=genre.pk).exists()

    def test_replacement_deletes_previous_when_configured(self, post):
        engine = engine_with("test_app.Post", "genre", {"delete-detached": True})
        old = Genre.objects.create(name="Drama")
        post.genre = old
        post.save()

        engine.update({"genre": {"name": "Horror"}}, post)

        post.refresh_from_db()
        assert post.genre.name == "Horror"
        assert not Genre.objects.filter(pk=old.pk).exists()

    def test_related_record_is_saved_before_parent(self, engine):
        with patch.object(engine.backend, "save", wraps=engine.backend.save) as save:
            engine.create(
                Post,
                {"title": "P", "genre": {"name": "G"}, "comments": [{"title": "c"}]},
            )

        saved = [type(call.args[0]).__name__ for call in save.call_args_list]
        assert saved == ["Genre", "Post", "Comment"]


class TestJoinTable:
    def test_link_only_links_without_updating(self, engine, post):
        author = Author.objects.create(name="Ann")

        engine.update({"authors": [{"id": author.pk, "name": "Changed"}]}, post)

        author.refresh_from_db()
        assert author.name == "Ann"
        assert list(post.authors.all()) == [author]

    def test_omitted_rows_are_detached_but_kept(self, engine, post):
        ann = Author.objects.create(name="Ann")
        bob = Author.objects.create(name="Bob")
        post.authors.add(ann, bob)

        engine.update({"authors": [ann.pk]}, post)

        assert list(post.authors.all()) == [ann]
        assert Author.objects.filter(pk=bob.pk).exists()

    def test_explicit_detach_false_keeps_rows(self, post):
        engine = engine_with("test_app.Post", "authors", {"link-only": True, "detach": False})
        ann = Author.objects.create(name="Ann")
        bob = Author.objects.create(name="Bob")
        post.authors.add(ann, bob)

        engine.update({"authors": [ann.pk]}, post)

        assert set(post.authors.all()) == {ann, bob}

    def test_delete_detached_removes_records(self, post):
        engine = engine_with(
            "test_app.Post", "authors", {"link-only": True, "delete-detached": True}
        )
        ann = Author.objects.create(name="Ann")
        bob = Author.objects.create(name="Bob")
        post.authors.add(ann, bob)

        engine.update({"authors": [ann.pk]}, post)

        assert list(Author.objects.all()) == [ann]

    def test_repeated_update_is_idempotent(self, engine, post):
        ann = Author.objects.create(name="Ann")
        bob = Author.objects.create(name="Bob")
        payload = {"authors": [ann.pk, bob.pk]}
        engine.update(payload, post)

        with patch.object(engine.backend, "attach") as attach, patch.object(
            engine.backend, "detach"
        ) as detach, patch.object(engine.backend, "new_instance") as new_instance:
            engine.update(payload, post)

        attach.assert_not_called()
        detach.assert_not_called()
        new_instance.assert_not_called()
        assert set(post.authors.all()) == {ann, bob}

    def test_reverse_join_creates_and_attaches(self, engine):
        author = engine.create(Author, {"name": "Ann", "posts": [{"title": "Hers"}]})

        post = Post.objects.get()
        assert post.title == "Hers"
        assert list(post.authors.all()) == [author]


class TestPolymorphic:
    def test_update_and_create_tags(self, engine, post):
        tag = Tag.objects.create(taggable=post, name="a")

        engine.update({"tags": [{"id": tag.pk, "name": "x"}, {"name": "y"}]}, post)

        tag.refresh_from_db()
        assert tag.name == "x"
        created = Tag.objects.get(name="y")
        assert created.content_type == ContentType.objects.get_for_model(Post)
        assert created.object_id == post.pk

    def test_link_existing_tag_moves_it(self, engine, post):
        other = Post.objects.create(title="Other")
        tag = Tag.objects.create(taggable=other, name="moving")

        engine.update({"tags": [tag.pk]}, post)

        tag.refresh_from_db()
        assert tag.object_id == post.pk


class TestSingularChild:
    def test_create_with_detail(self, engine):
        post = engine.create(Post, {"title": "P", "detail": {"summary": "short"}})

        assert PostDetail.objects.get().post_id == post.pk

    def test_accessor_override_key(self, engine):
        post = engine.create(Post, {"title": "P", "comment-has-one": {"summary": "s"}})

        assert PostDetail.objects.get(post=post).summary == "s"

    def test_replacing_detail_unlinks_previous(self, engine, post):
        old = PostDetail.objects.create(post=post, summary="old")

        engine.update({"detail": {"summary": "new"}}, post)

        old.refresh_from_db()
        assert old.post_id is None
        assert PostDetail.objects.get(post=post).summary == "new"

    def test_updating_same_detail_keeps_it(self, engine, post):
        detail = PostDetail.objects.create(post=post, summary="old")

        engine.update({"detail": {"id": detail.pk, "summary": "new"}}, post)

        detail.refresh_from_db()
        assert (detail.post_id, detail.summary) == (post.pk, "new")
        assert PostDetail.objects.count() == 1

    def test_null_deletes_detail_when_configured(self, post):
        engine = engine_with("test_app.Post", "detail", {"delete-detached": True})
        PostDetail.objects.create(post=post, summary="old")

        engine.update({"detail": None}, post)

        assert PostDetail.objects.count() == 0


class TestNonStandardKey:
    def test_create_with_given_key(self, engine, post):
        engine.update({"specials": [{"special": "sp-1", "name": "first"}]}, post)

        special = Special.objects.get()
        assert (special.pk, special.name, special.post_id) == ("sp-1", "first", post.pk)

    def test_update_by_given_key(self, engine, post):
        Special.objects.create(special="sp-1", name="first", post=post)

        engine.update({"specials": [{"special": "sp-1", "name": "renamed"}]}, post)

        assert Special.objects.count() == 1
        assert Special.objects.get(pk="sp-1").name == "renamed"


class TestDeepNesting:
    def test_deep_create_of_new_records(self, engine):
        post = engine.create(
            Post,
            {
                "title": "P",
                "comments": [
                    {"title": "c1", "author": {"name": "Ann"}},
                    {"title": "c2", "author": {"name": "Bob"}},
                ],
            },
        )

        comments = post.comments.order_by("id")
        assert [c.author.name for c in comments] == ["Ann", "Bob"]

    def test_deep_create_with_linked_records(self, engine):
        ann = Author.objects.create(name="Ann")
        genre = Genre.objects.create(name="Drama")

        post = engine.create(
            Post,
            {
                "title": "P",
                "genre": genre.pk,
                "authors": [ann.pk],
                "comments": [{"title": "c", "author": ann.pk}],
            },
        )

        post.refresh_from_db()
        assert post.genre_id == genre.pk
        assert list(post.authors.all()) == [ann]
        assert post.comments.get().author_id == ann.pk
        assert Author.objects.count() == 1

    def test_nested_update_of_grandchild(self, engine, post):
        ann = Author.objects.create(name="Ann")
        comment = Comment.objects.create(post=post, title="c", author=ann)

        engine.update(
            {"comments": [{"id": comment.pk, "author": {"id": ann.pk, "name": "Annie"}}]},
            post,
        )

        ann.refresh_from_db()
        assert ann.name == "Annie"
