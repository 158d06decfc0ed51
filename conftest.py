import pytest

from clicker.factory import create_web_app
from clicker.services import datastore


@pytest.fixture()
def app():
    app = create_web_app({
        'TESTING': True,
        'REDIS_FAKE': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'ACTIVITY_STORE': 'memory',
        'CREATE_DB': False,
        'JWT_SECRET': 'foosecret'
    })
    with app.app_context():
        datastore.create_all()
    yield app
    with app.app_context():
        datastore.drop_all()


@pytest.fixture()
def request_context(app):
    yield app.test_request_context()
