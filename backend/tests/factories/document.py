"""Factory Boy definition for :class:`tokengate.models.document.Document`."""

from __future__ import annotations

import factory

from tests.factories import BaseFactory
from tokengate.models.base import utc_now
from tokengate.models.document import Document


class DocumentFactory(BaseFactory):
    class Meta:
        model = Document

    id = None
    title = factory.Sequence(lambda n: f"Document {n}")
    content = factory.Faker("sentence")
    category = "General"
    user_id = None
    created_at = factory.LazyFunction(utc_now)
