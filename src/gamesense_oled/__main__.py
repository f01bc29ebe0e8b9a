import sys

from gamesense_oled.app.launcher import main

sys.exit(main())
