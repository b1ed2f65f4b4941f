import pytest
from django.db import connection


@pytest.hookimpl(trylast=True)
def pytest_collection_modifyitems(session, config, items):
    items[:] = sorted(items, key=lambda x: x.fspath)


@pytest.fixture(autouse=True)
def reset_sequences(request, django_db_blocker):
    if request.node.get_closest_marker('django_db'):
        with django_db_blocker.unblock():
            cursor = connection.cursor()

            # noinspection SqlResolve
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
            for i, (table,) in enumerate(cursor.fetchall()):
                cursor.execute(f"""
                    INSERT INTO SQLITE_SEQUENCE (name,seq) SELECT '{table}', {(i + 1) * 1000} WHERE NOT EXISTS
                        (SELECT changes() AS change FROM sqlite_sequence WHERE change <> 0);
                """)


@pytest.fixture
def category(db):
    from tests.models import Category

    return Category.objects.create(name='News')


@pytest.fixture
def author(db):
    from tests.models import Author

    return Author.objects.create(name='Ada Lovelace', email='ada@example.com')


@pytest.fixture
def post(category, author):
    from tests.models import Post

    return Post.objects.create(title='Hello', body='World', category=category, author=author)
