"""The general-purpose Var value wrapper."""