from tests.fakes.fake_redis import FakeJSON, FakeRedis

__all__ = ["FakeJSON", "FakeRedis"]
