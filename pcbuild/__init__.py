"""pcbuild command line shell around pcbuild_library."""
