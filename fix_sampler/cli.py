"""Command-line interface for fix_sampler.

Run:
    python -m fix_sampler inspect --csv fixes.csv
    python -m fix_sampler replay --csv fixes.csv --time-scale 10
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict

from fix_sampler.config import SamplerConfig
from fix_sampler.errors import user_message
from fix_sampler.inspect import export_replay_csv, inspect_samples
from fix_sampler.models import DEFAULT_TZ, GOOD_ENOUGH_M, PositionError, PositionErrorCode
from fix_sampler.simulate import Event, replay
from fix_sampler.timeutils import dt_from_epoch_ms
from fix_sampler.trace_io import events_from_samples, load_samples

EXIT_OK = 0
EXIT_BAD_INPUT = 1
EXIT_NO_SIGNAL = 2


def _config_from_args(args: argparse.Namespace) -> SamplerConfig:
    cfg = SamplerConfig(
        good_enough_m=args.good_enough_m,
        deadline_ms=int(args.deadline_seconds * 1000),
        per_fix_timeout_ms=int(args.per_fix_timeout_seconds * 1000),
    )
    cfg.validate()
    return cfg


def _cmd_inspect(args: argparse.Namespace) -> int:
    samples, summary = load_samples(args.csv)
    res = inspect_samples(samples, args.good_enough_m)

    print("### 行数")
    print(f"total_rows={summary.rows_total}, parsed={summary.rows_parsed}, skipped={summary.rows_skipped}")
    print()

    if res.min_time_ms is not None and res.max_time_ms is not None:
        print("### 时间范围（本地时区）")
        start = dt_from_epoch_ms(res.min_time_ms, args.tz)
        end = dt_from_epoch_ms(res.max_time_ms, args.tz)
        print(f"start={start.isoformat(sep=' ')}, end={end.isoformat(sep=' ')}")
        print()

    if res.delta is not None:
        print("### 采样间隔（秒）")
        d = res.delta
        print(f"count={d.count}, min={d.min:.3f}, median={d.median:.3f}, p95={d.p95:.3f}, max={d.max:.3f}")
        print()

    if res.accuracy is not None:
        print("### 精度（米）")
        a = res.accuracy
        print(f"min={a.min:.1f}, median={a.median:.1f}, p95={a.p95:.1f}, max={a.max:.1f}")
        print(f"<= {args.good_enough_m}m: {res.good_enough} 个，首个位于第 {res.first_good_enough_index} 行")
        print()

    if args.json:
        payload = asdict(res) | {
            "rows_total": summary.rows_total,
            "rows_parsed": summary.rows_parsed,
            "rows_skipped": summary.rows_skipped,
            "fieldnames": list(summary.fieldnames),
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    return EXIT_OK


def _cmd_replay(args: argparse.Namespace) -> int:
    cfg = _config_from_args(args)
    samples, _ = load_samples(args.csv)
    events: list[tuple[int, Event]] = list(
        events_from_samples(samples, start_index=args.start_index, time_scale=args.time_scale)
    )
    if args.error_at_ms is not None:
        # 模拟订阅中途报错（例如用户撤销了定位权限）
        code = PositionErrorCode[args.error_code.upper()]
        events.append((args.error_at_ms, PositionError(code, "simulated")))

    res = replay(events, cfg)
    print(f"state={res.state.value}, edge={res.exit_edge}, samples={res.samples_seen}, t={res.finished_at_ms}ms")

    if args.out:
        export_replay_csv(res, args.out, args.tz)
        print(f"已导出：{args.out}")

    if res.error is not None:
        print(user_message(res.error), file=sys.stderr)
        if args.json:
            print(json.dumps({"state": res.state.value, "reason": res.error.reason}, ensure_ascii=False))
        return EXIT_NO_SIGNAL

    s = res.sample
    if s is None:
        return EXIT_NO_SIGNAL
    print(f"最佳定位：lat={s.latitude:.7f}, lon={s.longitude:.7f}, 精度=±{s.accuracy_m:.0f}m")
    print(f"定位时间：{dt_from_epoch_ms(s.captured_at_ms, args.tz).isoformat(sep=' ')}")
    if args.json:
        payload = {"state": res.state.value, "edge": res.exit_edge, "samples_seen": res.samples_seen, **asdict(s)}
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    return EXIT_OK


def _add_sampler_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--good-enough-m", type=float, default=GOOD_ENOUGH_M, help="精度达到该值（米）立即结束")


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""

    p = argparse.ArgumentParser(prog="fix_sampler")
    p.add_argument("-v", "--verbose", action="store_true", help="输出调试日志")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_ins = sub.add_parser("inspect", help="分析定位轨迹CSV的时间范围/采样间隔/精度分布")
    p_ins.add_argument("--csv", type=str, default="fixes.csv", help="输入CSV路径")
    p_ins.add_argument("--tz", type=str, default=DEFAULT_TZ, help="时区（IANA），默认 Asia/Shanghai")
    p_ins.add_argument("--json", action="store_true", help="额外输出JSON（便于后处理）")
    _add_sampler_args(p_ins)
    p_ins.set_defaults(func=_cmd_inspect)

    p_rep = sub.add_parser("replay", help="用录制的轨迹回放一次采样，查看最终选中的定位")
    p_rep.add_argument("--csv", type=str, default="fixes.csv", help="输入CSV路径")
    p_rep.add_argument("--tz", type=str, default=DEFAULT_TZ, help="时区（IANA）")
    p_rep.add_argument("--start-index", type=int, default=0, help="从第几个有效定位开始回放")
    p_rep.add_argument(
        "--time-scale",
        type=float,
        default=1.0,
        help="时间压缩倍数（录制间隔除以该值；例如 60 表示每分钟一次的轨迹按每秒一次回放）",
    )
    _add_sampler_args(p_rep)
    p_rep.add_argument("--deadline-seconds", type=float, default=10.0, help="整体时间预算（秒）")
    p_rep.add_argument("--per-fix-timeout-seconds", type=float, default=15.0, help="单次定位等待上限（秒）")
    p_rep.add_argument("--error-at-ms", type=int, default=None, help="在该时刻（毫秒）注入一次订阅错误")
    p_rep.add_argument(
        "--error-code",
        type=str,
        default="position_unavailable",
        choices=[c.name.lower() for c in PositionErrorCode],
        help="注入错误的类型",
    )
    p_rep.add_argument("--out", type=str, default=None, help="导出逐步最佳定位的CSV路径")
    p_rep.add_argument("--json", action="store_true", help="额外输出JSON")
    p_rep.set_defaults(func=_cmd_replay)

    return p


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""

    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    try:
        return int(args.func(args))
    except (ValueError, KeyError, FileNotFoundError) as exc:
        print(f"输入错误：{exc}", file=sys.stderr)
        return EXIT_BAD_INPUT


if __name__ == "__main__":
    raise SystemExit(main())
