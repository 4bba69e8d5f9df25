import matplotlib

# Headless runs; the document renderer only needs the Agg canvas.
matplotlib.use("Agg")
