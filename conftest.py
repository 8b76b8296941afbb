from utils.progress import Progress

Progress.set_output(False)
