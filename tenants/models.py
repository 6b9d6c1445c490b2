"""Tenant records.

Every cart and order is scoped to exactly one tenant. The `code` is what
clients send in the `X-Tenant-ID` header and what the catalog expects.
"""

import uuid

from common.models import TimeStampedModel
from django.db import models


class Tenant(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.SlugField(max_length=64, unique=True)
    name = models.CharField(max_length=200)
    config = models.JSONField(default=dict, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["code"]

    def __str__(self) -> str:  # pragma: no cover
        return f"Tenant {self.code}"
