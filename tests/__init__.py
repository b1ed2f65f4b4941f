from datetime import datetime

import freezegun

# Start freezegun once, restarting it for every test is slow
initialize_freezegun = freezegun.freeze_time(datetime(2024, 1, 1))
initialize_freezegun.start()
