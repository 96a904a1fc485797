# Creative campaign retrieval-and-scoring engine
