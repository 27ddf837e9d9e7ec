# 05.10.26
