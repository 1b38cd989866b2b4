from shoreline.core import anneal
from shoreline.core.grid import Grid
from shoreline.visualization.progress_gif import FrameWriter, clear_output_dir, export_gif

clear_output_dir("out_run")
grid = Grid.random(12, 12, (11, 11), seed=123)

writer = FrameWriter(out_dir="out_run", scale=30)

best, stats = anneal.run_annealing(
    grid,
    steps=200_000,
    seed=123,
    on_improvement=writer,
)

export_gif("out_run", "out_run.gif", delay=50)
print(f"✅ Done! Best score {best} after {stats['improvements']} improvements. Saved GIF to out_run.gif")
