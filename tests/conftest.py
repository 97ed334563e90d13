"""Shared fixtures: synthetic Ghost databases and export archives."""

import io
import sqlite3
import tarfile
from pathlib import Path

import pytest
import toml

SCHEMA = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY,
    uuid VARCHAR(36) NOT NULL,
    name VARCHAR(150) NOT NULL,
    slug VARCHAR(150) NOT NULL,
    email VARCHAR(254) NOT NULL,
    image TEXT,
    bio TEXT,
    created_at DATETIME,
    updated_at DATETIME
);
CREATE TABLE tags (
    id INTEGER PRIMARY KEY,
    uuid VARCHAR(36) NOT NULL,
    name VARCHAR(150) NOT NULL,
    slug VARCHAR(150) NOT NULL,
    description VARCHAR(200),
    parent_id INTEGER,
    visibility VARCHAR(150) DEFAULT 'public'
);
CREATE TABLE posts (
    id INTEGER PRIMARY KEY,
    uuid VARCHAR(36) NOT NULL,
    title VARCHAR(150) NOT NULL,
    slug VARCHAR(150) NOT NULL,
    markdown TEXT,
    mobiledoc TEXT,
    html TEXT,
    image TEXT,
    featured BOOLEAN NOT NULL DEFAULT 0,
    page BOOLEAN NOT NULL DEFAULT 0,
    status VARCHAR(150) NOT NULL DEFAULT 'draft',
    language VARCHAR(6) NOT NULL DEFAULT 'en_US',
    visibility VARCHAR(150) NOT NULL DEFAULT 'public',
    meta_title VARCHAR(150),
    meta_description VARCHAR(200),
    author_id INTEGER NOT NULL,
    created_at DATETIME NOT NULL,
    created_by INTEGER NOT NULL,
    updated_at DATETIME,
    updated_by INTEGER,
    published_at DATETIME,
    published_by INTEGER
);
CREATE TABLE posts_tags (
    id INTEGER PRIMARY KEY,
    post_id INTEGER NOT NULL,
    tag_id INTEGER NOT NULL,
    sort_order INTEGER NOT NULL DEFAULT 0
);
"""

USER_DEFAULTS = {"uuid": "", "slug": "", "email": "author@example.com"}
TAG_DEFAULTS = {"uuid": "", "slug": ""}
POST_DEFAULTS = {
    "uuid": "",
    "title": "Untitled",
    "featured": 0,
    "page": 0,
    "status": "draft",
    "language": "en_US",
    "visibility": "public",
    "created_at": "2019-12-31 10:00:00",
    "created_by": 1,
}

PETE = {"id": 1, "name": "Pete"}
HELLO_WORLD = {
    "id": 1,
    "slug": "hello-world",
    "title": "Hello World",
    "markdown": "# Hi",
    "author_id": 1,
    "status": "published",
    "published_at": "2020-01-01",
}

GHOST_DB = "blog/content/data/ghost.db"


def _insert(conn, table, defaults, rows):
    for row in rows:
        values = {**defaults, **row}
        if "uuid" in defaults and not values["uuid"]:
            values["uuid"] = f"{table}-{values['id']}"
        if "slug" in defaults and not values["slug"]:
            values["slug"] = str(values["name"]).lower().replace(" ", "-")
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        conn.execute(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", list(values.values()))


def build_ghost_db(path, posts=(), users=(PETE,), tags=(), posts_tags=(), schema=SCHEMA):
    """Write a Ghost-shaped SQLite file and return its bytes."""
    path = Path(path)
    if path.exists():
        path.unlink()
    conn = sqlite3.connect(path)
    try:
        conn.executescript(schema)
        _insert(conn, "users", USER_DEFAULTS, users)
        _insert(conn, "tags", TAG_DEFAULTS, tags)
        _insert(conn, "posts", POST_DEFAULTS, posts)
        _insert(conn, "posts_tags", {}, posts_tags)
        conn.commit()
    finally:
        conn.close()
    return path.read_bytes()


def build_archive(path, members, compression=""):
    """Write ``members`` (archive path -> bytes, or None for a directory) as a tar.

    Member metadata is fixed so that identical input gives identical bytes.
    """
    mode = f"w:{compression}" if compression else "w"
    with tarfile.open(path, mode) as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.mtime = 1577836800
            if data is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar.addfile(info)
            else:
                info.size = len(data)
                info.mode = 0o644
                tar.addfile(info, io.BytesIO(data))
    return Path(path)


def read_page(path):
    """Split a written Zola page into (frontmatter dict, raw frontmatter, body)."""
    text = Path(path).read_text(encoding="utf-8")
    _, raw, rest = text.split("+++\n", 2)
    return toml.loads(raw), raw, rest[1:-1]


def tree(root):
    """Relative path -> bytes for every file below ``root``."""
    root = Path(root)
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


@pytest.fixture
def ghost_db(tmp_path):
    """Factory writing a Ghost database below tmp_path and returning its bytes."""
    counter = iter(range(1000))

    def factory(**kwargs):
        return build_ghost_db(tmp_path / f"ghost-{next(counter)}.sqlite", **kwargs)

    return factory


@pytest.fixture
def make_archive(tmp_path):
    """Factory writing an archive below tmp_path."""
    def factory(members, name="export.tar", compression=""):
        return build_archive(tmp_path / name, members, compression)

    return factory


@pytest.fixture
def hello_world_archive(ghost_db, make_archive):
    """One blog with the hello-world post, author Pete and no tags."""
    return make_archive({GHOST_DB: ghost_db(posts=[HELLO_WORLD])})


@pytest.fixture
def extract_path(tmp_path):
    return tmp_path / "site" / "content" / "blog"


@pytest.fixture
def page():
    """Reader splitting a written page into (frontmatter, raw frontmatter, body)."""
    return read_page


@pytest.fixture
def snapshot():
    """Reader returning every file below a directory as {relative path: bytes}."""
    return tree


@pytest.fixture
def hello_world():
    """The hello-world post row: published 2020-01-01 by author 1, body ``# Hi``."""
    return dict(HELLO_WORLD)


@pytest.fixture
def ghost_schema():
    """DDL of the Ghost tables written by ``ghost_db``."""
    return SCHEMA
