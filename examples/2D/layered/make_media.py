import numpy as np

# Must match the grid of input.toml
nx, ny = 40, 40

# Cell values are stored with x running fastest, i.e. as a (ny, nx) array
rho = np.full((ny, nx), 2500.0)
vp = np.full((ny, nx), 3500.0)

# Slower layer in the lower half of the domain
rho[:ny//2, :] = 2000.0
vp[:ny//2, :] = 2000.0

rho.astype(np.float64).tofile('rho.bin')
vp.astype(np.float64).tofile('vp.bin')
print(f'Wrote rho.bin and vp.bin for a {nx} x {ny} grid')
