'''Pluggable building blocks of apportionment methods.'''
