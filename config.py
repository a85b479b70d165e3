# config.py

SCHEDULE_CSV        = "data/schedule.csv"   # Relative paths resolve against the engine module directory

# Tag columns every schedule row carries
ROUND_FIELD         = "Round"
PLAYERS_FIELD       = "Players"
COURTS_FIELD        = "Courts"

EMPTY_SLOT          = "x"                   # Marker for an unused seat or bye slot
SEATS               = ("a", "b", "c", "d")  # a,b = team 1; c,d = team 2
BYE_SLOTS           = 12                    # Bye columns b1..b12, fixed bound

LOG_LEVEL           = "INFO"                # Options: DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_FORMAT          = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
