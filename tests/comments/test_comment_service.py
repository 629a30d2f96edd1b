from __future__ import annotations

from dataclasses import replace
from datetime import datetime

import pytest

from src.yourobc.yourobc.comments.model import Comment, Mention
from src.yourobc.yourobc.comments.service import CommentService, extract_mentions
from src.yourobc.yourobc.core.exceptions import AuthorizationError, NotFoundError, ValidationError


class FakeComments:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, Comment] = {}

    def _mentions(self, raw):
        return tuple(Mention(**m) for m in raw)

    def create(self, *, owner_id, values):
        comment_id = self._next_id
        self._next_id += 1
        values = dict(values, mentions=self._mentions(values["mentions"]))
        self.rows[comment_id] = Comment(comment_id=comment_id, public_id=f"cmt-{comment_id}", owner_id=owner_id, **values)
        return comment_id

    def get(self, comment_id):
        comment = self.rows.get(int(comment_id))
        return comment if comment and comment.deleted_at is None else None

    def list_for_entity(self, *, entity_type, entity_id, include_internal=True):
        return [
            c
            for c in self.rows.values()
            if c.deleted_at is None
            and (c.entity_type, c.entity_id) == (entity_type, entity_id)
            and (include_internal or not c.is_internal)
        ]

    def update(self, comment_id, *, changes, updated_by):
        changes = dict(changes)
        if "mentions" in changes:
            changes["mentions"] = self._mentions(changes["mentions"])
        self.rows[comment_id] = replace(self.rows[comment_id], **changes)
        return True

    def soft_delete(self, comment_id, *, deleted_by):
        self.rows[comment_id] = replace(self.rows[comment_id], deleted_at=datetime(2026, 10, 16))
        return True


@pytest.fixture
def svc(audit):
    return CommentService(FakeComments(), audit=audit)


def test_extract_mentions_dedupes_by_ref():
    mentions = extract_mentions("Ping @[Anna S](u-3) and @[Ben](u-4), again @[Anna Schmidt](u-3). Not @plain")

    assert mentions == (Mention(name="Anna S", user_ref="u-3"), Mention(name="Ben", user_ref="u-4"))


def test_add_comment_stores_mentions(svc, staff, audit):
    comment = svc.get_comment(svc.add_comment(actor=staff, entity_type="invoice", entity_id=7, content="Hi @[Ben](u-4)"))

    assert comment.mentions == (Mention(name="Ben", user_ref="u-4"),)
    assert comment.is_edited is False
    assert audit.actions() == ["comment.created"]


def test_comment_content_is_validated(svc, staff):
    with pytest.raises(ValidationError):
        svc.add_comment(actor=staff, entity_type="invoice", entity_id=7, content="   ")
    with pytest.raises(ValidationError):
        svc.add_comment(actor=staff, entity_type="invoice", entity_id=7, content="x" * 5001)


def test_replies_are_one_level_and_same_entity(svc, staff, other_staff):
    root = svc.add_comment(actor=staff, entity_type="quote", entity_id=1, content="Root")
    reply = svc.add_comment(actor=other_staff, entity_type="quote", entity_id=1, content="Reply", parent_id=root)

    with pytest.raises(ValidationError, match="nested"):
        svc.add_comment(actor=staff, entity_type="quote", entity_id=1, content="Deep", parent_id=reply)
    with pytest.raises(ValidationError, match="same entity"):
        svc.add_comment(actor=staff, entity_type="quote", entity_id=2, content="Elsewhere", parent_id=root)
    with pytest.raises(NotFoundError):
        svc.add_comment(actor=staff, entity_type="quote", entity_id=1, content="Ghost", parent_id=99)


def test_edit_marks_comment_edited(svc, staff, other_staff, now):
    comment_id = svc.add_comment(actor=staff, entity_type="invoice", entity_id=7, content="Draft")

    with pytest.raises(AuthorizationError):
        svc.edit_comment(actor=other_staff, comment_id=comment_id, content="Hijack")
    edited = svc.edit_comment(actor=staff, comment_id=comment_id, content="Final @[Ben](u-4)", now=now)

    assert edited.content == "Final @[Ben](u-4)"
    assert edited.is_edited is True
    assert edited.edited_at == now
    assert len(edited.mentions) == 1


def test_thread_groups_replies_and_drops_orphans(svc, staff, other_staff, admin):
    first = svc.add_comment(actor=staff, entity_type="project", entity_id=3, content="First")
    second = svc.add_comment(actor=staff, entity_type="project", entity_id=3, content="Second")
    svc.add_comment(actor=other_staff, entity_type="project", entity_id=3, content="Re first", parent_id=first)
    svc.add_comment(actor=other_staff, entity_type="project", entity_id=3, content="Re second", parent_id=second)
    svc.add_comment(actor=staff, entity_type="project", entity_id=3, content="Internal", is_internal=True)

    svc.delete_comment(actor=admin, comment_id=second)
    threads = svc.list_thread(entity_type="project", entity_id=3, include_internal=False)

    assert [t.comment.content for t in threads] == ["First"]
    assert [r.content for r in threads[0].replies] == ["Re first"]
    assert len(svc.list_thread(entity_type="project", entity_id=3)) == 2
