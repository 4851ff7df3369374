"""
Shared fixtures: a small catalog and fake collaborators for the wizard.
No test talks to the network.
"""
import pytest

from errors import ApiError, NotificationError
from models import Catalog, ContactInfo, Extra, Pack, StudentInfo


class FakeSubmitter:
    def __init__(self, fail=False):
        self.fail = fail
        self.orders = []

    def submit_order(self, order):
        self.orders.append(order)
        if self.fail:
            raise ApiError("Forbidden", status_code=403)
        return {"id": len(self.orders)}


class FakeNotifier:
    def __init__(self, fail=False):
        self.fail = fail
        self.notified = []

    def notify(self, order):
        self.notified.append(order)
        if self.fail:
            raise NotificationError("smtp down")


class FakeLookup:
    def __init__(self, packs=(), extras=(), error=None):
        self.packs = list(packs)
        self.extras = list(extras)
        self.error = error
        self.calls = 0

    def list_packs(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.packs

    def list_extras(self):
        return self.extras


@pytest.fixture
def catalog():
    return Catalog(
        packs=(
            Pack("Pack A", "Pack A", "Individual + turma", 10000),
            Pack("Pack B", "Pack B", "Só individual", 6000),
        ),
        extras=(
            Extra("E1", "Íman", 1000),
            Extra("E2", "Porta-chaves", 2000),
            Extra("E3", "Caneca", 3000),
        ),
    )


@pytest.fixture
def contact():
    return ContactInfo("Maria Silva", "maria@example.com")


@pytest.fixture
def student():
    return StudentInfo("João Silva", "5ºA")
