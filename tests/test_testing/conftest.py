"""Import fixtures from topic_authz.testing for test discovery."""

from topic_authz.testing._fixtures import authz_engine, authz_store_url

__all__ = ["authz_engine", "authz_store_url"]
