from django.db import models


class FavoriteAction(models.TextChoices):
    ADD = "add", "Add"
    REMOVE = "remove", "Remove"
