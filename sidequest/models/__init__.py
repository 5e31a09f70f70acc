from sidequest.models.base import Base  # noqa: F401
from sidequest.models.badge import Badge, UserBadge  # noqa: F401
from sidequest.models.checkpoint import Checkpoint  # noqa: F401
from sidequest.models.checkpoint_attempt import CheckpointAttempt  # noqa: F401
from sidequest.models.checkpoint_progress import CheckpointProgress  # noqa: F401
from sidequest.models.hunt import Hunt  # noqa: F401
from sidequest.models.notification_log import DeliveryStatus, NotificationLog  # noqa: F401
from sidequest.models.player_run import PlayerRun, RunStatus  # noqa: F401
from sidequest.models.user import User  # noqa: F401
