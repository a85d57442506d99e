"""arq worker settings module.

Import path for arq CLI: arq studyquest.workers.settings.WorkerSettings
"""

from __future__ import annotations

from studyquest.workers.engagement_worker import EngagementWorkerSettings as WorkerSettings

__all__ = ["WorkerSettings"]
