# Picross Grid Style Definitions

# Cell States
COLOR_EMPTY = (235, 235, 235)
COLOR_FILLED = (40, 44, 60)
COLOR_CROSS = (200, 60, 60)
COLOR_CROSS_AUTO = (170, 170, 190)

# Lines and Outlines
COLOR_GRID_LINES = (150, 150, 160)
COLOR_GROUP_LINES = (220, 70, 70)   # every fifth row/column
COLOR_HOVER = (20, 120, 220)
COLOR_PREVIEW = (176, 196, 222)     # pending line gesture

# Clues
COLOR_CLUE_BG_1 = (245, 222, 179)
COLOR_CLUE_BG_2 = (176, 196, 222)
COLOR_CLUE_BG_HOVER = (255, 255, 255)
COLOR_TEXT_CLUE = (0, 0, 0)
COLOR_TEXT_CLUE_DONE = (150, 150, 150)

# Text
COLOR_TEXT_OVERLAY = (240, 248, 255)

# Application
COLOR_BG = (30, 30, 30)
COLOR_PREVIEW_BG = (255, 255, 255)
COLOR_PREVIEW_FILL = (0, 0, 0)
