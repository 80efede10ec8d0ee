from __future__ import annotations

from pathlib import Path

import streamlit as st

from fix_sampler.config import SamplerConfig
from fix_sampler.errors import user_message
from fix_sampler.inspect import inspect_samples
from fix_sampler.models import DEFAULT_TZ, GOOD_ENOUGH_M, PositionError, PositionErrorCode, PositionSample
from fix_sampler.simulate import Event, replay
from fix_sampler.timeutils import dt_from_epoch_ms
from fix_sampler.trace_io import events_from_samples, load_samples


@st.cache_data(show_spinner=False)
def _load_samples(path_csv: str, mtime: float) -> list[PositionSample]:
    _ = mtime  # part of cache key so updated files reload automatically
    samples, _summary = load_samples(path_csv)
    return samples


def main() -> None:
    st.set_page_config(page_title="定位采样回放", layout="wide")
    st.title("定位采样回放：在时间预算内选出最准的一次定位")

    with st.sidebar:
        st.subheader("数据与时区")
        tz_name = st.text_input("时区（IANA）", value=DEFAULT_TZ)
        path_csv = st.text_input("定位轨迹 CSV 路径", value="fixes.csv")

        st.subheader("采样参数")
        good_enough_m = st.number_input("good_enough_m（米）", value=GOOD_ENOUGH_M, step=5.0, min_value=0.0)
        deadline_s = st.number_input("时间预算（秒）", value=10.0, step=1.0, min_value=0.1)

        with st.expander("回放设置", expanded=False):
            start_index = st.number_input("起始行 start_index", value=0, step=1, min_value=0)
            time_scale = st.number_input("时间压缩倍数 time_scale", value=1.0, step=1.0, min_value=0.001)
            inject_error = st.checkbox("注入一次订阅错误", value=False)
            error_at_ms = st.number_input("错误时刻（毫秒）", value=5000, step=500, min_value=0)
            error_code = st.selectbox("错误类型", [c.name for c in PositionErrorCode], index=1)

    p = Path(path_csv)
    if not p.exists():
        st.error(f"找不到文件：{path_csv!r}。可用 scripts/generate_sample_fixes_csv.py 生成示例数据。")
        return

    try:
        samples = _load_samples(path_csv, p.stat().st_mtime)
        cfg = SamplerConfig(good_enough_m=float(good_enough_m), deadline_ms=int(float(deadline_s) * 1000))
        events: list[tuple[int, Event]] = list(
            events_from_samples(samples, start_index=int(start_index), time_scale=float(time_scale))
        )
    except (ValueError, KeyError) as exc:
        st.exception(exc)
        return

    if inject_error:
        events.append((int(error_at_ms), PositionError(PositionErrorCode[error_code], "simulated")))

    res = replay(events, cfg)
    info = inspect_samples(samples[int(start_index):], cfg.good_enough_m)

    st.subheader("结果")
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("状态", res.state.value)
    c2.metric("结束原因", res.exit_edge or "-")
    c3.metric("处理的定位数", str(res.samples_seen))
    c4.metric("结束时刻", f"{res.finished_at_ms / 1000.0:.1f}s")

    if res.error is not None:
        st.warning(user_message(res.error))
    elif res.sample is not None:
        s = res.sample
        st.success(
            f"选中定位：lat={s.latitude:.7f}, lon={s.longitude:.7f}, 精度=±{s.accuracy_m:.0f}m，"
            f"时间={dt_from_epoch_ms(s.captured_at_ms, tz_name).isoformat(sep=' ')}"
        )

    st.subheader("逐步最佳定位")
    rows = [
        {
            "step": i,
            "best_accuracy_m": b.accuracy_m,
            "latitude": b.latitude,
            "longitude": b.longitude,
        }
        for i, b in enumerate(res.best_history, start=1)
    ]
    if rows:
        st.line_chart(rows, x="step", y="best_accuracy_m")
    st.dataframe(rows, use_container_width=True, height=360)

    with st.expander("轨迹概况", expanded=False):
        st.write(
            {
                "samples": info.samples,
                "good_enough": info.good_enough,
                "first_good_enough_index": info.first_good_enough_index,
                "accuracy_median": info.accuracy.median if info.accuracy else None,
            }
        )

    st.caption("说明：回放在虚拟时钟上运行，录制的间隔按 time_scale 压缩；在同一时刻到达的定位晚于时间预算到期处理。")


if __name__ == "__main__":
    main()
