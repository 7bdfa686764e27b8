from .script_deployer import main

raise SystemExit(main())
