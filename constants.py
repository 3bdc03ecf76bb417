# --- Maze Dimensions ---
DEFAULT_MAZE_WIDTH = 15  # Must be odd
DEFAULT_MAZE_HEIGHT = 15  # Must be odd
MIN_MAZE_SIZE = 3
START_X, START_Y = 1, 1

# --- Cell Values (grid snapshot format) ---
PATH_VALUE = 0
WALL_VALUE = 1

# --- Carving / Stepping Directions ---
# Generator jumps two cells at a time, solver and players move one.
CARVE_STEPS = [(0, -2), (0, 2), (-2, 0), (2, 0)]  # up, down, left, right
MOVE_STEPS = [(0, -1), (0, 1), (-1, 0), (1, 0)]

# --- Timing (seconds) ---
MOVE_COOLDOWN = 0.080  # Minimum interval between move attempts per agent
INPUT_POLL_INTERVAL = 0.025  # Held-key movement poll
AI_STEP_INTERVAL = 0.090  # Autonomous agent step
TIMER_REFRESH_INTERVAL = 0.010  # Elapsed time display refresh

# --- Players ---
DEFAULT_PLAYER1_NAME = "Player 1"
DEFAULT_PLAYER2_NAME = "Player 2"
AI_OPPONENT_NAME = "AI"

# --- Input Keys ---
PLAYER1_KEYS = {"w": (0, -1), "s": (0, 1), "a": (-1, 0), "d": (1, 0)}
PLAYER2_KEYS = {"up": (0, -1), "down": (0, 1), "left": (-1, 0), "right": (1, 0)}

# --- Leaderboard ---
LEADERBOARD_MAX_ENTRIES = 10
SCORE_NAME_WIDTH = 15

# --- STL Export ---
STL_CELL_SIZE = 1.0
STL_WALL_HEIGHT = 1.5
STL_BASE_THICKNESS = STL_WALL_HEIGHT / 3.0  # Configurable base height

# --- Visualization ---
VIS_WALL_COLOR = "black"
VIS_PATH_COLOR = "white"
VIS_START_MARKER = "go"
VIS_START_MARKER_SIZE = 10
VIS_EXIT_MARKER = "ro"
VIS_EXIT_MARKER_SIZE = 10
VIS_PLAYER1_COLOR = "tab:blue"
VIS_PLAYER2_COLOR = "tab:orange"
VIS_AGENT_MARKER_SIZE = 12
VIS_SOLUTION_LINE_STYLE = "r-"
VIS_SOLUTION_LINE_LW = 2.0
VIS_SOLUTION_LINE_ALPHA = 0.9
VIS_TRAIL_LINE_STYLE = "c--"
VIS_TRAIL_LINE_LW = 1.0
VIS_TRAIL_LINE_ALPHA = 0.6
VIS_DPI = 150
