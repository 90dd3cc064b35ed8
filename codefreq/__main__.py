from codefreq.cli import main

raise SystemExit(main())
