from crestscope.cli.main import main

main()
