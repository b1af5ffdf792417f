"""Sample documents for local development and demos."""

from __future__ import annotations

import logging
from collections import Counter
from typing import cast

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import select
from sqlalchemy.orm import Session

from tokengate.models.base import utc_now
from tokengate.models.document import Document

LOGGER = logging.getLogger(__name__)

DOCUMENT_FIXTURES: list[dict[str, str]] = [
    {
        "title": "Azure AD 가이드",
        "content": (
            "Azure AD 인증 설정 방법: 1. Azure Portal 접속 2. App Registration 생성 "
            "3. Client ID 및 Tenant ID 확인 4. Redirect URI 설정"
        ),
        "category": "Authentication",
    },
    {
        "title": "JWT 토큰 이해하기",
        "content": (
            "JWT는 Header.Payload.Signature 구조로 되어 있으며, Base64로 인코딩됩니다. "
            "Access Token은 짧은 수명, Refresh Token은 긴 수명을 가집니다."
        ),
        "category": "Security",
    },
    {
        "title": "PKCE 플로우",
        "content": (
            "PKCE(Proof Key for Code Exchange)는 Code Verifier와 Code Challenge를 사용하여 "
            "Authorization Code 가로채기 공격을 방지합니다."
        ),
        "category": "Authentication",
    },
    {
        "title": "OAuth 2.0 기본 개념",
        "content": (
            "OAuth 2.0은 인증 프로토콜로 Resource Owner, Client, Authorization Server, "
            "Resource Server의 4가지 역할로 구성됩니다."
        ),
        "category": "Security",
    },
    {
        "title": "MSAL.js 사용법",
        "content": (
            "Microsoft Authentication Library는 Azure AD 인증을 쉽게 구현할 수 있게 해주는 "
            "JavaScript 라이브러리입니다."
        ),
        "category": "Development",
    },
]


Summary = dict[str, dict[str, int]]


def seed_documents(database: SQLAlchemy, *, verbose: bool = False) -> Summary:
    """Insert the sample documents whose title is not stored yet.

    Existing rows are never modified, so running the seeder twice is a no-op.
    """
    session = cast(Session, database.session)
    wanted = [fixture["title"] for fixture in DOCUMENT_FIXTURES]
    present = set(session.scalars(select(Document.title).where(Document.title.in_(wanted))))
    now = utc_now()
    created = 0
    for fixture in DOCUMENT_FIXTURES:
        if fixture["title"] in present:
            continue
        session.add(Document(created_at=now, **fixture))
        created += 1
        if verbose:
            LOGGER.debug("seeded document %r", fixture["title"])
    session.commit()
    return {Document.__tablename__: {"created": created, "existing": len(present)}}


SEEDERS = (seed_documents,)


def run_all(database: SQLAlchemy, *, verbose: bool = False) -> Summary:
    """Run every seeder in :data:`SEEDERS` and merge their counters."""
    combined: Summary = {}
    for seeder in SEEDERS:
        for table, counters in seeder(database, verbose=verbose).items():
            merged = Counter(combined.get(table, {}))
            merged.update(counters)
            combined[table] = dict(merged)
    return combined


__all__ = ["DOCUMENT_FIXTURES", "SEEDERS", "run_all", "seed_documents"]
