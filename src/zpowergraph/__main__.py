from zpowergraph.cli import main

raise SystemExit(main())
