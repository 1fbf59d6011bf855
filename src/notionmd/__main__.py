from notionmd.cli import main

raise SystemExit(main())
