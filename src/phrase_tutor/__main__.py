from phrase_tutor.app import main

raise SystemExit(main())
