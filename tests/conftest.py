import asyncio
from datetime import datetime, timedelta

import mongomock
import pytest
from fastapi.testclient import TestClient

import config
import database
import main
import uploads


class FakeStorage:
    def __init__(self):
        self.uploaded = []
        self.ran_on_event_loop = []

    def upload_image(self, field_name, upload):
        try:
            asyncio.get_running_loop()
            self.ran_on_event_loop.append(True)
        except RuntimeError:
            self.ran_on_event_loop.append(False)
        uploads.image_extension(field_name, upload)
        self.uploaded.append((field_name, upload.filename, upload.file.read()))
        return f"https://cdn.example.com/students/{field_name}-{upload.filename}"


@pytest.fixture
def mongo(monkeypatch):
    test_db = mongomock.MongoClient()["college_test"]
    monkeypatch.setattr(database, "db", test_db)
    database.ensure_indexes()
    return test_db


@pytest.fixture
def storage():
    fake = FakeStorage()
    main.app.dependency_overrides[uploads.get_storage] = lambda: fake
    yield fake
    main.app.dependency_overrides.clear()


@pytest.fixture
def client(mongo, storage):
    return TestClient(main.app)


@pytest.fixture
def admin_headers(client):
    resp = client.post(
        "/api/admin/login",
        json={"username": config.ADMIN_USERNAME, "password": config.ADMIN_PASSWORD},
    )
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def registration_form(**overrides):
    form = {
        "studentName": "Asha Verma",
        "email": "asha.verma@example.com",
        "phone": "9876543210",
        "dateOfBirth": "2005-04-12",
        "gender": "Female",
        "fatherName": "Ramesh Verma",
        "adhaarNo": "123412341234",
        "fatherContact": "9876500000",
        "address": "12 Hazratganj",
        "state": "Uttar Pradesh",
        "pincode": "226001",
        "course": "BCA",
        "declarationAccepted": "true",
    }
    form.update(overrides)
    return form


def insert_student(mongo, i, **overrides):
    doc = {
        "registrationNo": f"CCM2026{i:05d}",
        "studentName": f"Student {i}",
        "fullName": f"Student {i}",
        "email": f"student{i}@example.com",
        "phone": f"90000{i:05d}",
        "adhaarNo": f"1000{i:08d}",
        "course": "BBA",
        "status": "Pending",
        "documents": {"photo": None, "signature": None},
        "createdAt": datetime(2026, 1, 1) + timedelta(minutes=i),
        "updatedAt": datetime(2026, 1, 1) + timedelta(minutes=i),
    }
    doc.update(overrides)
    return str(mongo["student"].insert_one(doc).inserted_id)


def insert_message(mongo, i, **overrides):
    doc = {
        "fullName": f"Sender {i}",
        "email": f"sender{i}@example.com",
        "phone": f"80000{i:05d}",
        "subject": f"Question {i}",
        "message": "When do admissions open?",
        "status": "New",
        "createdAt": datetime(2026, 1, 1) + timedelta(minutes=i),
        "updatedAt": datetime(2026, 1, 1) + timedelta(minutes=i),
    }
    doc.update(overrides)
    return str(mongo["contact"].insert_one(doc).inserted_id)
