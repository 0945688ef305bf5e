from slab_shear_app.cli import main

raise SystemExit(main())
