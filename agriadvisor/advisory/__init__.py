"""
Advisory modules: prompt construction, advice generation and the request
orchestration pipeline that ties the location adapters together.
"""
