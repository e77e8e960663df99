from app.core.config import settings

def test_single_worker_without_redis(monkeypatch):
    monkeypatch.setattr(settings, "REDIS_URL", None)
    assert settings.worker_count(4) == 1
    assert settings.worker_count(1) == 1

def test_workers_kept_with_redis(monkeypatch):
    monkeypatch.setattr(settings, "REDIS_URL", "redis://localhost:6379/0")
    assert settings.worker_count(4) == 4
