from .timer import Timer

# Global timer shared by all components
timer = Timer()
