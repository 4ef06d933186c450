"""Monitor subsystem — prober, recorder, scheduler, SQLite store, uptime series."""

from .errors import FatalFailure, MonitorError, PersistenceFailure, ValidationFailure
from .models import Bucket, BucketUnit, CheckResult, Incident, ProbeOutcome, Target
from .prober import Prober
from .recorder import Recorder
from .scheduler import MonitorScheduler
from .service import UptimeService
from .store import MonitorStore
