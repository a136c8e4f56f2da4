from remotecache.cli import main

raise SystemExit(main())
