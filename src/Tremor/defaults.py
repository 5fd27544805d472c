def default_config():
    # Create a default configuration
    default_state = {
        'time' : 0.0,
        'step' : 0,
    }

    default_params = {
        # Domain and fine grid
        'dimension' : 2,
        'sx' : 1000.0,
        'sy' : 1000.0,
        'sz' : 1000.0,
        'nx' : 10,
        'ny' : 10,
        'nz' : 10,

        # Fine discretization (interior penalty DG)
        'order' : 1,
        'dg_sigma' : -1.0,  # SIPG
        'dg_kappa' : 1.0,

        # Coarse grid and local basis sizes
        'gms_Nx' : 2,
        'gms_Ny' : 2,
        'gms_Nz' : 2,
        'gms_nb' : 4,
        'gms_ni' : 1,

        # Media
        'rho' : 2500.0,
        'vp' : 3500.0,
        'rhofile' : None,
        'vpfile' : None,

        # Source
        'source_x' : 500.0,
        'source_y' : 500.0,
        'source_z' : 500.0,
        'frequency' : 10.0,
        'scale' : 1e+6,
        'spatial_function' : 'gauss',
        'gauss_support' : 10.0,
        'plane_wave' : False,

        # Time stepping
        'T' : 1.0,
        'dt' : 1e-3,
        'step_snap' : 1000,
        'step_seis' : 1,

        # Mass solve
        'solver_rel_tol' : 1e-12,
        'solver_max_iter' : 200,
    }

    default_options = {
        'mesh' : 'structured.StructuredMesh',
        'basis' : 'spectral.DGSpectralBasis',
        'model' : 'acoustic.AcousticGMsFEM',
        'mode' : 'auto',
        'partition' : 'block',
        'fine_scale' : False,
        'print_matrices' : False,
        'output_dir' : 'output',
        'extra_string' : '',
        'threading_layer' : 'omp',
        'num_threads' : 0,
        'log_level' : 'INFO',
    }

    return default_state, default_params, default_options
