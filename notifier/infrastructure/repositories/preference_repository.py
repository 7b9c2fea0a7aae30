"""Persistence layer for notification preferences."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from notifier.domain.entities import UPDATABLE_PREFERENCE_FIELDS, Preference
from notifier.infrastructure.models import PreferenceModel


class PreferenceRepository:
    """Read and write the single preference row kept per user."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_or_create(self, email: str) -> Preference:
        """Return the stored preferences, inserting the defaults on first access."""

        model = self._get_or_create_model(email)
        return self._to_entity(model)

    def update(self, email: str, changes: Mapping[str, Any]) -> Preference:
        model = self._get_or_create_model(email)
        for name, value in changes.items():
            if name in UPDATABLE_PREFERENCE_FIELDS:
                setattr(model, name, value)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def _get_or_create_model(self, email: str) -> PreferenceModel:
        model = self.session.get(PreferenceModel, email)
        if model is not None:
            return model

        defaults = Preference(email=email)
        model = PreferenceModel(
            email=email,
            **{name: getattr(defaults, name) for name in UPDATABLE_PREFERENCE_FIELDS},
        )
        self.session.add(model)
        try:
            self.session.commit()
        except IntegrityError:
            # Another request created the row first.
            self.session.rollback()
            model = self.session.get(PreferenceModel, email)
            if model is None:
                raise
            return model
        self.session.refresh(model)
        return model

    @staticmethod
    def _to_entity(model: PreferenceModel) -> Preference:
        return Preference(
            email=model.email,
            **{name: getattr(model, name) for name in UPDATABLE_PREFERENCE_FIELDS},
        )


__all__ = ["PreferenceRepository"]
