from django.contrib.contenttypes.fields import GenericForeignKey, GenericRelation
from django.contrib.contenttypes.models import ContentType
from django.db import models


class Genre(models.Model):
    name = models.CharField(max_length=100)

    class Meta:
        app_label = "test_app"


class Author(models.Model):
    name = models.CharField(max_length=100)
    gender = models.CharField(max_length=1, blank=True)

    class Meta:
        app_label = "test_app"


class Tag(models.Model):
    name = models.CharField(max_length=50)
    content_type = models.ForeignKey(ContentType, on_delete=models.CASCADE)
    object_id = models.PositiveIntegerField()
    taggable = GenericForeignKey("content_type", "object_id")

    class Meta:
        app_label = "test_app"


class Post(models.Model):
    title = models.CharField(max_length=200)
    body = models.TextField(blank=True)
    genre = models.ForeignKey(
        Genre, on_delete=models.SET_NULL, related_name="posts", null=True, blank=True
    )
    authors = models.ManyToManyField(Author, blank=True, related_name="posts")
    tags = GenericRelation(Tag)

    class Meta:
        app_label = "test_app"

    def word_count(self):
        return len(self.body.split())


class PostDetail(models.Model):
    post = models.OneToOneField(
        Post, on_delete=models.CASCADE, related_name="detail", null=True, blank=True
    )
    summary = models.CharField(max_length=200)

    class Meta:
        app_label = "test_app"


class Comment(models.Model):
    post = models.ForeignKey(
        Post, on_delete=models.CASCADE, related_name="comments", null=True, blank=True
    )
    author = models.ForeignKey(
        Author, on_delete=models.SET_NULL, related_name="comments", null=True, blank=True
    )
    title = models.CharField(max_length=200)
    body = models.TextField(blank=True)

    class Meta:
        app_label = "test_app"


class Special(models.Model):
    special = models.CharField(max_length=50, primary_key=True)
    name = models.CharField(max_length=100)
    post = models.ForeignKey(
        Post, on_delete=models.CASCADE, related_name="specials", null=True, blank=True
    )

    class Meta:
        app_label = "test_app"
