from __future__ import annotations
import os, tempfile
import streamlit as st
from shoreline.cli import run
from shoreline.config import RunConfig
from shoreline.core.errors import ConfigError, ExportError

st.set_page_config(page_title="Shoreline", page_icon="🏝️", layout="wide")

st.title("Shoreline — grow a path that touches as many obstacles as possible")

with st.sidebar:
    st.header("⚙️ Settings")
    rows = st.slider("Rows", 4, 40, 12)
    cols = st.slider("Columns", 4, 40, 12)
    src_row = st.number_input("Source row", min_value=0, max_value=rows - 1, value=rows - 1, step=1)
    src_col = st.number_input("Source column", min_value=0, max_value=cols - 1, value=cols - 1, step=1)
    steps = st.slider("Steps", 1_000, 500_000, 100_000, step=1_000)
    cooling = st.slider("Cooling factor", 0.90, 1.0, 0.95, step=0.001, format="%.3f")
    protection = st.selectbox("Protected cells", ["shared_line", "source_only"])
    delay = st.slider("GIF frame delay (1/100 s)", 5, 200, 50)
    seed = st.number_input("Random seed", value=42, step=1)
    run_button = st.button("🚀 Run annealing")

if run_button:
    with tempfile.TemporaryDirectory() as tmp:
        cfg = RunConfig(
            rows=rows,
            cols=cols,
            source=(int(src_row), int(src_col)),
            steps=steps,
            cooling=cooling,
            seed=int(seed),
            protection=protection,
            out_dir=os.path.join(tmp, "grids"),
            gif_path=os.path.join(tmp, "shoreline.gif"),
            frame_delay=delay,
        )

        st.write("Annealing... this may take a minute ⏳")
        try:
            best, stats = run(cfg, verbose=False)
        except (ConfigError, ExportError) as exc:
            st.error(str(exc))
            st.stop()

        st.success(f"✅ Done! Best score: {best}")
        if os.path.exists(cfg.gif_path):
            st.image(cfg.gif_path, caption="Best-so-far frames", use_column_width=True)
            st.download_button("⬇️ Download GIF", data=open(cfg.gif_path, "rb").read(), file_name="shoreline.gif")
        else:
            st.info("The initial grid was never improved on, so there is no animation.")

        st.markdown(
            f"**Improvements:** {stats['improvements']} • **Accepted:** {stats['accepted']} • "
            f"**Rejected:** {stats['rejected']} • **Time:** {stats['duration_s']:.2f}s"
        )
