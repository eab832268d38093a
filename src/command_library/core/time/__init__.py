from command_library.core.time.abc import Time
from command_library.core.time.fake import FakeTime
from command_library.core.time.real import RealTime

__all__ = ["FakeTime", "RealTime", "Time"]
