import numpy as np
import os
import sys
import matplotlib.pyplot as plt
import matplotlib.animation as anim
import tqdm

# Usage: python render_snapshots.py [output_dir] [field]
output_dir = sys.argv[1] if len(sys.argv) > 1 else 'output'
field = sys.argv[2] if len(sys.argv) > 2 else 'coarse_pressure'
snap_dir = os.path.join(output_dir, 'snapshots')

# Open all snapshots of the field
fnames = []
for f in os.listdir(snap_dir):
    if f.startswith(field + '_') and f.endswith('.npz'):
        fnames.append(os.path.join(snap_dir, f))

print(f'Found {len(fnames)} snapshots of {field}')
fnames.sort()

frames = []
for path in fnames:
    with np.load(path) as f:
        frames.append({key: f[key] for key in f.files})

def cell_averages(frame):
    # DOFs are stored cell by cell, (order+1)^2 nodal values per cell
    nx, ny = frame['counts']
    n_loc = (int(frame['order']) + 1)**2
    return frame['values'].reshape(ny*nx, n_loc).mean(axis=1).reshape(ny, nx)

vmax = max(np.abs(cell_averages(f)).max() for f in frames) or 1.0
sx, sy = frames[0]['sizes']

fig, ax = plt.subplots(figsize=(7, 6))
img = ax.imshow(cell_averages(frames[0]), cmap='seismic', vmin=-vmax, vmax=vmax,
                origin='lower', extent=(0, sx, 0, sy))
fig.colorbar(img, ax=ax)
ax.set_xlabel('x [m]')
ax.set_ylabel('y [m]')

pbar = tqdm.tqdm(total=len(frames), desc='Animating snapshots', unit='frame')
def animate(i):
    img.set_data(cell_averages(frames[i]))
    ax.set_title(f'{field}, t = {float(frames[i]["time"]):.3f} s')

    # Update pbar
    pbar.update(1)
    pbar.set_postfix(frame=i)
    return img,

ani = anim.FuncAnimation(fig, animate, frames=len(frames), interval=100)
ani.save(f'{field}.mp4', writer='ffmpeg', fps=10)
