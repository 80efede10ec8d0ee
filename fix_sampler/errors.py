"""Errors surfaced by the sampler."""

from __future__ import annotations

from fix_sampler.models import PositionError, PositionErrorCode


class SamplerError(Exception):
    """Base class for sampler failures."""


class NoLocationCapability(SamplerError):
    """The environment provides no location service at all."""

    def __init__(self, message: str = "当前环境不支持定位服务") -> None:
        super().__init__(message)


class NoSignalAcquired(SamplerError):
    """The session ended without receiving a single fix.

    Attributes:
        detail: Platform error that ended the session, or None when the deadline expired.
        deadline_expired: True when the wall-clock budget ran out.
    """

    def __init__(self, detail: PositionError | None = None, *, deadline_expired: bool = False) -> None:
        self.detail = detail
        self.deadline_expired = deadline_expired
        if detail is not None:
            msg = f"定位失败（code={int(detail.code)}）：{detail.message or detail.code.name}"
        else:
            msg = "超时：未能获取到稳定的定位信号"
        super().__init__(msg)

    @property
    def reason(self) -> str:
        """One of "permission_denied", "timeout" or "no_signal"."""

        if self.detail is None:
            return "no_signal"
        if self.detail.permission_denied:
            return "permission_denied"
        if self.detail.code == PositionErrorCode.TIMEOUT:
            return "timeout"
        return "no_signal"


def user_message(err: SamplerError) -> str:
    """Short message suitable for showing to the person holding the device."""

    if isinstance(err, NoLocationCapability):
        return "此设备/浏览器不支持定位。"
    if isinstance(err, NoSignalAcquired):
        if err.reason == "permission_denied":
            return "定位权限被拒绝，请在系统设置中允许定位后重试。"
        if err.reason == "timeout":
            return "定位超时，请移动到开阔处后重试。"
        return "未能获取到定位信号，请稍后重试。"
    return str(err)
